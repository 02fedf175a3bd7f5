"""
Запись синтетического PNG в файл без сборки всего файла в памяти.
Байты копируются из PNGStream кусками фиксированного размера.
"""

from typing import BinaryIO, Union

from pixel_source import PixelSource
from png_layout import Framing
from png_stream import DEFAULT_CHUNK_SIZE, SyntheticPNGEncoder


class PNGWriter:
    """Класс для записи PNG файлов"""

    def __init__(self, width: int, height: int, source: PixelSource, offset: int = 0,
                 framing: Union[Framing, str] = Framing.COMPAT,
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.width = width
        self.height = height
        self.chunk_size = chunk_size
        self.encoder = SyntheticPNGEncoder(width, height, source, offset, framing)

    @property
    def total_size(self) -> int:
        return self.encoder.total_size

    def write_to(self, file: BinaryIO) -> int:
        """Записывает PNG в открытый файловый объект, возвращает число байт"""
        written = 0
        with self.encoder.open_stream() as stream:
            for data in stream.iter_chunks(self.chunk_size):
                file.write(data)
                written += len(data)
        return written

    def write(self, file_path: str) -> int:
        """Записывает PNG файл"""
        with open(file_path, 'wb') as f:
            return self.write_to(f)
