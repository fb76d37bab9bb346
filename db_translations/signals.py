"""Signals sent by the translation store.

``translation_saved`` is sent once per affected bucket after a session commit
that created, updated or deleted ``Translation`` rows. The sender is the Flask
application; receivers get ``namespace``, ``group`` and ``locale`` keyword
arguments.
"""
from blinker import Namespace

_signals = Namespace()

translation_saved = _signals.signal('translation-saved')
