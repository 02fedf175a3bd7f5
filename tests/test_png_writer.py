"""
Тесты для png_writer.py
"""
import io
import os
import tempfile
import zlib

import pytest

from errors import InvalidDimensionError
from pixel_source import BytesPixelSource, SolidColorPixelSource
from png_chunks import PNG_SIGNATURE
from png_stream import open_png_stream
from png_writer import PNGWriter


class TestPNGWriter:
    """Тесты для класса PNGWriter"""

    def test_init(self):
        """Тест инициализации PNGWriter"""
        writer = PNGWriter(2, 2, SolidColorPixelSource((255, 0, 0, 255)))
        assert writer.width == 2
        assert writer.height == 2
        assert writer.total_size == writer.encoder.layout.total_size

    def test_init_invalid_size(self):
        """Неверные размеры"""
        with pytest.raises(InvalidDimensionError):
            PNGWriter(0, 2, SolidColorPixelSource((255, 0, 0, 255)))

    def test_write_to_file_object(self):
        """Запись в файловый объект совпадает с потоком"""
        pixels = bytes(range(64))
        writer = PNGWriter(4, 4, BytesPixelSource(pixels), chunk_size=1000)
        output = io.BytesIO()
        assert writer.write_to(output) == writer.total_size
        assert output.getvalue() == open_png_stream(4, 4, BytesPixelSource(pixels)).read()

    def test_write_twice(self):
        """Каждая запись открывает новый поток"""
        writer = PNGWriter(3, 1, SolidColorPixelSource((1, 2, 3, 4)))
        first, second = io.BytesIO(), io.BytesIO()
        writer.write_to(first)
        writer.write_to(second)
        assert first.getvalue() == second.getvalue()

    def test_write_png_file(self):
        """Тест записи PNG файла"""
        writer = PNGWriter(2, 2, SolidColorPixelSource((0, 255, 0, 255)), framing='strict')

        with tempfile.NamedTemporaryFile(delete=False, suffix='.png') as f:
            temp_path = f.name

        try:
            written = writer.write(temp_path)
            assert os.path.getsize(temp_path) == written == writer.total_size

            # Проверяем PNG сигнатуру
            with open(temp_path, 'rb') as f:
                assert f.read(8) == PNG_SIGNATURE
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)

    def test_write_png_large_image(self):
        """Тест записи большого изображения"""
        width, height = 300, 200
        writer = PNGWriter(width, height, SolidColorPixelSource((10, 20, 30, 255)), framing='strict')

        with tempfile.NamedTemporaryFile(delete=False, suffix='.png') as f:
            temp_path = f.name

        try:
            writer.write(temp_path)
            with open(temp_path, 'rb') as f:
                data = f.read()
            layout = writer.encoder.layout
            start = layout.idat_offset + 8
            idat = data[start:start + layout.idat_data_length]
            row = b'\x00' + bytes([10, 20, 30, 255]) * width
            assert zlib.decompress(idat) == row * height
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
