"""IFPUG complexity and function-point calculators.

Each function type is rated from two counts:

- data functions (ILF/ALI, EIF/AIE): record element types (RET) x data
  element types (DET);
- transactional functions (EI, EO, EQ): file types referenced (FTR) x DET.

Counts are bucketed into three rows and three columns; the cell gives the
complexity, the weight table gives the function points.

    ILF/EIF     DET <=19   20-50    >=51
    RET <=1     Low        Average  Average
    RET 2-5     Low        Average  High
    RET >=6     Average    High     High

    EI          DET <=4    5-15     >=16
    FTR <=1     Low        Low      Average
    FTR 2       Low        Average  High
    FTR >=3     Average    High     High

    EO/EQ       DET <=5    6-19     >=20
    FTR <=1     Low        Low      Average
    FTR 2-3     Low        Average  High
    FTR >=4     Average    High     High
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

from ..models import Complexity, ComplexityResult, ComponentType

L, A, H = Complexity.LOW, Complexity.AVERAGE, Complexity.HIGH

# (row upper bounds, column upper bounds, matrix)
_Table = Tuple[Sequence[int], Sequence[int], Sequence[Sequence[Complexity]]]

_DATA_FUNCTION_TABLE: _Table = (
    (1, 5),     # RET
    (19, 50),   # DET
    (
        (L, A, A),
        (L, A, H),
        (A, H, H),
    ),
)

_EI_TABLE: _Table = (
    (1, 2),     # FTR
    (4, 15),    # DET
    (
        (L, L, A),
        (L, A, H),
        (A, H, H),
    ),
)

_EO_EQ_TABLE: _Table = (
    (1, 3),     # FTR
    (5, 19),    # DET
    (
        (L, L, A),
        (L, A, H),
        (A, H, H),
    ),
)

# Function points per complexity
_WEIGHTS: Dict[ComponentType, Dict[Complexity, int]] = {
    ComponentType.ALI: {L: 4, A: 6, H: 10},
    ComponentType.AIE: {L: 5, A: 7, H: 10},
    ComponentType.EI: {L: 3, A: 4, H: 6},
    ComponentType.EO: {L: 4, A: 5, H: 7},
    ComponentType.EQ: {L: 3, A: 4, H: 6},
}


def _bucket(value: int, upper_bounds: Sequence[int]) -> int:
    for index, bound in enumerate(upper_bounds):
        if value <= bound:
            return index
    return len(upper_bounds)


def _rate(table: _Table, row_count: int, det: int, component_type: ComponentType) -> ComplexityResult:
    row_bounds, column_bounds, matrix = table
    complexity = matrix[_bucket(row_count, row_bounds)][_bucket(det, column_bounds)]
    return ComplexityResult(
        complexity=complexity,
        function_points=_WEIGHTS[component_type][complexity],
    )


def calculate_ilf_complexity(ret: int = 1, det: int = 1) -> ComplexityResult:
    """Internal logical file (ALI)."""
    return _rate(_DATA_FUNCTION_TABLE, ret, det, ComponentType.ALI)


def calculate_eif_complexity(ret: int = 1, det: int = 1) -> ComplexityResult:
    """External interface file (AIE)."""
    return _rate(_DATA_FUNCTION_TABLE, ret, det, ComponentType.AIE)


def calculate_ei_complexity(ftr: int = 0, det: int = 1) -> ComplexityResult:
    return _rate(_EI_TABLE, ftr, det, ComponentType.EI)


def calculate_eo_complexity(ftr: int = 0, det: int = 1) -> ComplexityResult:
    return _rate(_EO_EQ_TABLE, ftr, det, ComponentType.EO)


def calculate_eq_complexity(ftr: int = 0, det: int = 1) -> ComplexityResult:
    return _rate(_EO_EQ_TABLE, ftr, det, ComponentType.EQ)


def calculate_component_complexity(
    component_type: ComponentType,
    ret: Optional[int] = None,
    det: Optional[int] = None,
    ftr: Optional[int] = None,
) -> ComplexityResult:
    """Rate a component by type, defaulting unset counts.

    Unset (or zero) RET and DET count as 1; unset FTR counts as 0.
    """
    component_type = ComponentType(component_type)
    det = det or 1
    if component_type is ComponentType.ALI:
        return calculate_ilf_complexity(ret or 1, det)
    if component_type is ComponentType.AIE:
        return calculate_eif_complexity(ret or 1, det)

    ftr = ftr or 0
    if component_type is ComponentType.EI:
        return calculate_ei_complexity(ftr, det)
    if component_type is ComponentType.EO:
        return calculate_eo_complexity(ftr, det)
    return calculate_eq_complexity(ftr, det)
