# Nombre de archivo: __init__.py
# Ubicación de archivo: api/app/routes/__init__.py
# Descripción: Init del paquete routes

"""Routers de la API de SISTEMA SIC.

Cada módulo expone su propio ``router`` y ``create_app`` los registra en orden:
health, auth, services, stats, admin y el WebSocket de cambios.
"""
