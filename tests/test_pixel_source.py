"""
Тесты для pixel_source.py
"""
import pytest

from errors import PixelSourceError
from pixel_source import (
    BytesPixelSource,
    FunctionPixelSource,
    PixelSource,
    SolidColorPixelSource,
)


class TestBytesPixelSource:
    """Тесты источника поверх буфера"""

    def test_read(self):
        """Чтение байта и диапазона"""
        source = BytesPixelSource(bytearray(range(16)))
        assert len(source) == 16
        assert source.read_byte(5) == 5
        assert source.read_bytes(4, 4) == b'\x04\x05\x06\x07'

    def test_memoryview(self):
        """Буфер может быть memoryview"""
        source = BytesPixelSource(memoryview(b'\x01\x02\x03\x04'))
        assert source.read_bytes(0, 4) == b'\x01\x02\x03\x04'

    def test_out_of_range(self):
        """Чтение за пределами буфера"""
        source = BytesPixelSource(b'\x00' * 4)
        with pytest.raises(PixelSourceError):
            source.read_byte(4)
        with pytest.raises(PixelSourceError):
            source.read_bytes(2, 3)
        with pytest.raises(PixelSourceError):
            source.read_byte(-1)


class TestSolidColorPixelSource:
    """Тесты источника одного цвета"""

    def test_repeats_color(self):
        """Цвет повторяется каждые 4 байта"""
        source = SolidColorPixelSource((10, 20, 30, 40))
        assert source.read_byte(0) == 10
        assert source.read_byte(7) == 40
        assert source.read_bytes(0, 8) == bytes([10, 20, 30, 40] * 2)

    def test_unaligned_run(self):
        """Чтение с середины пикселя"""
        source = SolidColorPixelSource((1, 2, 3, 4))
        assert source.read_bytes(3, 6) == bytes([4, 1, 2, 3, 4, 1])
        assert source.read_bytes(1, 0) == b''

    def test_invalid_color(self):
        """Неверный цвет"""
        with pytest.raises(PixelSourceError):
            SolidColorPixelSource((1, 2, 3))
        with pytest.raises(PixelSourceError):
            SolidColorPixelSource((1, 2, 3, 256))


class TestFunctionPixelSource:
    """Тесты источника-функции"""

    def test_read_bytes_default(self):
        """read_bytes по умолчанию собирается из read_byte"""
        source = FunctionPixelSource(lambda address: address % 256)
        assert source.read_bytes(254, 4) == b'\xfe\xff\x00\x01'

    def test_invalid_value(self):
        """Функция вернула не байт"""
        source = FunctionPixelSource(lambda address: 300)
        with pytest.raises(PixelSourceError):
            source.read_byte(0)

    def test_base_class_abstract(self):
        """Базовый класс не реализует read_byte"""
        with pytest.raises(NotImplementedError):
            PixelSource().read_byte(0)
