"""Inventory-consistency services: conversion, stock ledger, production and sales."""
