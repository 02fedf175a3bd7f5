"""
Раскладка синтетического PNG файла: размеры блоков и смещения chunk'ов.
Только арифметика, без ввода-вывода.
"""

from enum import Enum
from typing import List, NamedTuple, Tuple, Union

from errors import InvalidDimensionError, SizeOverflowError

# Максимальное значение 4-байтового беззнакового целого PNG
PNG_UINT31_MAX = 2 ** 31 - 1

PNG_SIGNATURE_SIZE = 8
CHUNK_OVERHEAD = 12  # длина (4) + тип (4) + CRC (4)
IHDR_DATA_SIZE = 13
IHDR_CHUNK_SIZE = CHUNK_OVERHEAD + IHDR_DATA_SIZE
IEND_CHUNK_SIZE = CHUNK_OVERHEAD
ZLIB_HEADER_SIZE = 2
ADLER32_TRAILER_SIZE = 4
BYTES_PER_PIXEL = 4  # RGBA, 8 бит на канал


class Framing(str, Enum):
    """Способ упаковки stored-блоков DEFLATE"""

    # Фиксированные слоты по 32768 байт: 1 байт заголовка + 32767 байт данных,
    # без LEN/NLEN, без сигнатуры PNG и без Adler-32 в конце потока
    COMPAT = 'compat'
    # Настоящие stored-блоки: 5 байт заголовка, Adler-32, сигнатура PNG
    STRICT = 'strict'

    @classmethod
    def parse(cls, value: Union['Framing', str]) -> 'Framing':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Неизвестный режим упаковки: {value!r}") from None


class ChunkKind(Enum):
    """Участок выходного потока"""

    SIGNATURE = 'signature'
    IHDR = 'IHDR'
    IDAT = 'IDAT'
    IEND = 'IEND'
    EXHAUSTED = 'exhausted'


# payload-байт на блок, байт заголовка блока
_BLOCK_GEOMETRY = {
    Framing.COMPAT: (32767, 1),
    Framing.STRICT: (65535, 5),
}


class Layout(NamedTuple):
    """Неизменяемая раскладка файла, вычисляется один раз по ширине и высоте"""

    framing: Framing
    width: int
    height: int
    row_size: int
    decompressed_size: int
    block_payload_size: int
    block_header_size: int
    block_count: int
    compressed_size: int
    trailer_size: int
    idat_data_length: int
    signature_size: int
    ihdr_offset: int
    idat_offset: int
    idat_size: int
    iend_offset: int
    total_size: int

    @property
    def ihdr_size(self) -> int:
        return IHDR_CHUNK_SIZE

    @property
    def iend_size(self) -> int:
        return IEND_CHUNK_SIZE

    @property
    def block_stride(self) -> int:
        return self.block_header_size + self.block_payload_size

    def block_length(self, index: int) -> int:
        """Количество payload-байт в блоке с номером index"""
        if index < 0 or index >= self.block_count:
            raise IndexError(f"Блок {index} вне диапазона 0-{self.block_count - 1}")
        start = index * self.block_payload_size
        return min(self.block_payload_size, self.decompressed_size - start)

    def regions(self) -> List[Tuple[ChunkKind, int, int]]:
        """Участки файла по порядку: (тип, начало, размер)"""
        regions = []
        if self.signature_size:
            regions.append((ChunkKind.SIGNATURE, 0, self.signature_size))
        regions.append((ChunkKind.IHDR, self.ihdr_offset, self.ihdr_size))
        regions.append((ChunkKind.IDAT, self.idat_offset, self.idat_size))
        regions.append((ChunkKind.IEND, self.iend_offset, self.iend_size))
        return regions

    def to_dict(self) -> dict:
        data = self._asdict()
        data['framing'] = self.framing.value
        data['ihdr_size'] = self.ihdr_size
        data['iend_size'] = self.iend_size
        return data


def _check_dimension(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidDimensionError(f"{name} должна быть целым числом, получено {value!r}")
    if value <= 0:
        raise InvalidDimensionError(f"{name} должна быть положительной, получено {value}")
    if value > PNG_UINT31_MAX:
        raise SizeOverflowError(f"{name} {value} не помещается в поле IHDR")
    return value


def plan_layout(width: int, height: int, framing: Union[Framing, str] = Framing.COMPAT) -> Layout:
    """Вычисляет раскладку файла для изображения width x height"""
    width = _check_dimension('Ширина', width)
    height = _check_dimension('Высота', height)
    framing = Framing.parse(framing)

    # Каждая строка начинается с байта фильтра (0 - без фильтрации)
    row_size = 1 + width * BYTES_PER_PIXEL
    decompressed_size = height * row_size

    payload_size, header_size = _BLOCK_GEOMETRY[framing]
    block_count = -(-decompressed_size // payload_size)

    if framing is Framing.COMPAT:
        compressed_size = block_count * (header_size + payload_size)
        trailer_size = 0
        signature_size = 0
    else:
        compressed_size = decompressed_size + block_count * header_size
        trailer_size = ADLER32_TRAILER_SIZE
        signature_size = PNG_SIGNATURE_SIZE

    idat_data_length = ZLIB_HEADER_SIZE + compressed_size + trailer_size
    if idat_data_length > PNG_UINT31_MAX:
        raise SizeOverflowError(
            f"Данные IDAT ({idat_data_length} байт) не помещаются в поле длины chunk'а"
        )

    ihdr_offset = signature_size
    idat_offset = ihdr_offset + IHDR_CHUNK_SIZE
    idat_size = CHUNK_OVERHEAD + idat_data_length
    iend_offset = idat_offset + idat_size
    total_size = iend_offset + IEND_CHUNK_SIZE

    return Layout(
        framing=framing,
        width=width,
        height=height,
        row_size=row_size,
        decompressed_size=decompressed_size,
        block_payload_size=payload_size,
        block_header_size=header_size,
        block_count=block_count,
        compressed_size=compressed_size,
        trailer_size=trailer_size,
        idat_data_length=idat_data_length,
        signature_size=signature_size,
        ihdr_offset=ihdr_offset,
        idat_offset=idat_offset,
        idat_size=idat_size,
        iend_offset=iend_offset,
        total_size=total_size,
    )
