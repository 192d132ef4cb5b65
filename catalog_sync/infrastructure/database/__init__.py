"""
Acceso a la base de datos destino (PostgreSQL via psycopg).
"""
