# src/atlas_runflow/core/pipeline/validation.py
"""
Validação estrutural de definições de pipeline.

O Atlas RunFlow não ordena Stages topologicamente: a ordem de execução é
exatamente a ordem de declaração. Por isso a estrutura é validada em tempo
de configuração, antes de qualquer run ser criada.

Regras validadas:
    - cada Stage possui `name` não vazio
    - nomes de Stage são únicos no pipeline
    - `depends_on` referencia apenas Stages declarados ANTES no mesmo pipeline
      (sem referências futuras, desconhecidas ou a si mesmo; ciclos tornam-se
      impossíveis por construção)

Decisões arquiteturais:
    - Erros estruturais são fatais e levantados como `InvalidPipelineDefinition`
    - Todas as violações são coletadas e reportadas de uma vez em `details`
    - A validação não executa Stages nem consulta o record store

Limites explícitos:
    - Não valida se o tipo de Stage possui executor registrado
      (tipos desconhecidos usam o executor genérico)
    - Não valida a existência do script referenciado
"""

from __future__ import annotations

from typing import Dict, List, Set

from atlas_runflow.core.exceptions import InvalidPipelineDefinition

from .types import PipelineDefinition


def collect_definition_violations(definition: PipelineDefinition) -> List[Dict[str, str]]:
    """
    Coleta violações estruturais de uma definição, na ordem de declaração.

    Returns:
        List[Dict[str, str]]: Lista (possivelmente vazia) de violações, cada uma
        com `code`, `stage` e, quando aplicável, `dependency`.
    """
    violations: List[Dict[str, str]] = []
    seen: Set[str] = set()
    declared = {s.name for s in definition.stages}

    for stage in definition.stages:
        name = stage.name
        if not isinstance(name, str) or not name.strip():
            violations.append({"code": "empty_stage_name", "stage": repr(name)})
            continue

        if name in seen:
            violations.append({"code": "duplicate_stage_name", "stage": name})

        for dep in stage.depends_on:
            if dep == name:
                violations.append({"code": "self_dependency", "stage": name, "dependency": dep})
            elif dep in seen:
                continue
            elif dep in declared:
                violations.append({"code": "forward_dependency", "stage": name, "dependency": dep})
            else:
                violations.append({"code": "unknown_dependency", "stage": name, "dependency": dep})

        seen.add(name)

    return violations


def validate_pipeline_definition(definition: PipelineDefinition) -> PipelineDefinition:
    """
    Valida uma definição de pipeline e a devolve inalterada quando válida.

    Args:
        definition (PipelineDefinition): Definição a validar.

    Returns:
        PipelineDefinition: A mesma definição, para uso encadeado.

    Raises:
        InvalidPipelineDefinition: Se houver qualquer violação estrutural.
    """
    violations = collect_definition_violations(definition)
    if violations:
        first = violations[0]
        raise InvalidPipelineDefinition(
            message=(
                f"Invalid pipeline definition '{definition.name}': "
                f"{first['code']} at stage {first['stage']}"
            ),
            details={"pipeline_id": definition.id, "violations": violations},
            hint="Declare cada dependência antes do Stage que a utiliza e use nomes únicos.",
        )
    return definition
