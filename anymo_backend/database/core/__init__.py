"""
Core functions that connect the API router with the database: transactional
CRUD operations over chat records, schema creation and the health ping.
"""
