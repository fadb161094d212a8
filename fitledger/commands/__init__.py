# -*- coding: utf-8 -*-
"""
Command extraction

Turns directive lines embedded in assistant text into ledger mutations and
returns the text with the directives removed.
"""

from .grammar import Directive, DirectiveKind, strip_directives, tokenize
from .processor import AppliedDirective, CommandProcessor, CommandResult, SkippedDirective

__all__ = [
    'AppliedDirective',
    'CommandProcessor',
    'CommandResult',
    'Directive',
    'DirectiveKind',
    'SkippedDirective',
    'strip_directives',
    'tokenize',
]
