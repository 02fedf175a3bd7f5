"""
Исключения потокового кодировщика PNG.
"""

import io


class PNGStreamError(Exception):
    """Базовое исключение для всех ошибок кодировщика"""


class InvalidDimensionError(PNGStreamError, ValueError):
    """Ширина или высота изображения не является положительным целым"""


class SizeOverflowError(PNGStreamError, OverflowError):
    """Изображение не помещается в 4-байтовые поля длины PNG"""


class InternalInconsistencyError(PNGStreamError, RuntimeError):
    """Курсор оказался не на границе chunk'а - ошибка арифметики раскладки"""


class UnsupportedOperationError(PNGStreamError, io.UnsupportedOperation):
    """Поток только последовательный: mark/reset/seek не поддерживаются"""


class PixelSourceError(PNGStreamError, ValueError):
    """Источник пикселей не может отдать запрошенный диапазон"""
