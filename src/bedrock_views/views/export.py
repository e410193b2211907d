"""
Linhas planas para exportação (CSV/PDF).

Formato estável, independente de qualquer preocupação de UI: para cada
linha master da view (na ordem dos grupos), uma lista ordenada de
`{label, value, text_align}` por campo visível. Linhas detail não entram.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .assembler import ComputedView


def flat_rows(view: ComputedView) -> List[List[Dict[str, Any]]]:
    return [
        [
            {
                "label": f.label,
                "value": row.values.get(f.column_name),
                "text_align": f.text_align.value,
            }
            for f in view.fields
        ]
        for row in view.rows
    ]
