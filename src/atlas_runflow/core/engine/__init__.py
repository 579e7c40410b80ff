# src/atlas_runflow/core/engine/__init__.py
"""
Engine do Atlas RunFlow.

Componentes principais:
    - resolver    → decide `ready | blocked` a partir dos Stages já processados
    - scripts     → runners do efeito colateral (noop, subprocess, callables)
    - executor    → executores de Stage por tipo e seu registry
    - coordinator → driver síncrono de uma run completa

Invariantes:
    - Stages executam na ordem declarada, no máximo uma vez por run
    - O estado de cada Stage é persistido após sua conclusão

Limites explícitos:
    - Sem paralelismo, re-planejamento ou retry
"""
