"""
Pipeline de sincronizacion one-way: feed de catalogo (XML) -> PostgreSQL.

Objetivos de diseño:
- Idempotencia: se puede ejecutar N veces sin duplicar datos (UPSERT por id natural).
- Orden referencial: currency -> categories -> offers.
- Una transaccion por tabla; el fallo de offers no revierte currency/categories.
- Deteccion de cambios de estructura antes de escribir.
- Sin borrado de filas ausentes en el feed (salvo los parametros de cada oferta,
  que se reemplazan completos en cada sync).
"""
