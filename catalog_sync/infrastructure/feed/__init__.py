"""
Acceso al feed de catalogo: descarga HTTP, parseo XML y cache del documento.
"""
