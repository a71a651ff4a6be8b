"""
Rewriter Package.

Provides the `BuilderRewriter` (generic ``Builder::new(..).setter(..)``
emission plus dispatch to plugin rewriters) and its failure types.
"""

from builder_switcheroo.core.rewriter.base import BuilderRewriter
from builder_switcheroo.core.rewriter.errors import RewriteNote, StructuralViolation

__all__ = ["BuilderRewriter", "RewriteNote", "StructuralViolation"]
