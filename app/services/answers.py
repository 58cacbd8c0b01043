# app/services/answers.py
"""
Normalización de respuestas.

El cliente puede enviar las respuestas como lista de pares
``[{"questionId": "u1", "value": 3}, ...]`` o como mapa ``{"u1": 3, ...}``.
Internamente siempre se trabaja con la lista de pares.
"""
from __future__ import annotations

from typing import Any


def coerce_value(value: Any) -> Any:
    """Convierte a int cuando no hay pérdida; si no, devuelve el valor tal cual.

    El rango 1..5 (y el tipo) lo exige la validación, no este paso.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return value
    return value


def normalize_answers(raw: Any) -> Any:
    """Devuelve la forma canónica ``[{"questionId", "value"}, ...]``.

    Con un mapa, el orden es el de iteración del mapa: quien necesite el orden
    de las preguntas debe usar el snapshot ``sections[].questionIds``.
    Entradas que no son objetos se dejan intactas para que la validación las rechace.
    """
    if isinstance(raw, dict):
        return [{"questionId": qid, "value": coerce_value(v)} for qid, v in raw.items()]
    if isinstance(raw, (list, tuple)):
        out = []
        for item in raw:
            if isinstance(item, dict):
                pair = {k: item[k] for k in ("questionId", "value") if k in item}
                if "value" in pair:
                    pair["value"] = coerce_value(pair["value"])
                out.append(pair)
            else:
                out.append(item)
        return out
    return raw


def duplicate_question_ids(answers: list[dict[str, Any]]) -> list[str]:
    """questionIds que aparecen más de una vez, en orden de primera repetición."""
    seen: set[str] = set()
    dups: list[str] = []
    for a in answers:
        qid = a["questionId"]
        if qid in seen and qid not in dups:
            dups.append(qid)
        seen.add(qid)
    return dups
