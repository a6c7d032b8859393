"""varbench: compare predicted variant calls against a truth set.

Public API is small; most users should use the CLI:

    varbench evaluate --truth ... --predicted ... --outdir ...

or the evaluator directly (see ``varbench.evaluator.VariantEvaluator``).
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
