"""Core domain logic for patient risk assessment.

This package contains the business logic and domain models,
isolated from external dependencies for easy testing and reasoning.
"""
