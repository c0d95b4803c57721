"""
Translation module - machine translation helpers

This module provides:
- providers: TranslationProvider interface and the MyMemory HTTP provider
- batch: translate every missing target value from the source culture
"""

from comax.translation.providers import TranslationProvider, MyMemoryProvider, get_provider
from comax.translation.batch import BatchProgress, BatchResult, translate_missing
