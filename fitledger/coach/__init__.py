# -*- coding: utf-8 -*-
"""Coach chat — the text-generation collaborator boundary."""
