# src/atlas_runflow/integrations/__init__.py
"""
Adapters para serviços externos.

Dependências de terceiros usadas aqui são opcionais e importadas sob demanda.
"""
