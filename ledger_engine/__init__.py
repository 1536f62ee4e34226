"""Ledger, installment, recurrence and aggregate-cache engine"""
