"""
Test Data Factories

Factories for creating lobby test data (boards with members)
without hardcoding values across test modules.
"""
