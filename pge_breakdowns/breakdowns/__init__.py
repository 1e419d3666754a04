"""Per-document extraction facade.

Each published page is one breakdown of a single family (state entity,
non-state entity, income, or Social Security programme). The
:class:`Breakdown` class runs the shared pipeline with the family's rule set
from :mod:`pge_breakdowns.transformer.category_rules`.

Modules
-------
breakdown
    ``Breakdown`` facade and ``open_breakdown`` constructor.
"""

from pge_breakdowns.breakdowns.breakdown import Breakdown, open_breakdown

__all__ = ["Breakdown", "open_breakdown"]
