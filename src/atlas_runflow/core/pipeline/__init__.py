# src/atlas_runflow/core/pipeline/__init__.py
"""
# Pipeline Core — Atlas RunFlow

Estruturas fundamentais de um pipeline no Atlas RunFlow.

## Componentes

- **types**
  - `StageSpec`, `PipelineDefinition`: definição declarativa
  - `StageState`, `PipelineRun`: estado de execução
  - `StageStatus`, `RunStatus`, `StageType`, `TriggerType`

- **validation**
  - `validate_pipeline_definition`: nomes únicos e dependências somente para trás

- **context**
  - `RunContext`: identidade da run, deadline e log estruturado de eventos

## Limites Explícitos

- Não executa Stages
- Não persiste dados
"""
