"""
Database module for SIAKAD

Contains seed data and database utilities.
"""
from app.db.seed_data import seed_all, clear_all, seed_programs_of_study

__all__ = ["seed_all", "clear_all", "seed_programs_of_study"]
