"""
Sincronizacion one-way de un feed de catalogo (YML) hacia PostgreSQL.

Monedas, categorias y ofertas (con sus parametros) se cargan por UPSERT
usando los identificadores naturales del feed.
"""

__version__ = "1.0.0"
