"""
Сборка фиксированных chunk'ов PNG и заголовков zlib/DEFLATE.
"""

import struct

from checksums import crc32
from png_layout import Framing

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'

BIT_DEPTH = 8
COLOR_TYPE_RGBA = 6

ZLIB_CM_DEFLATE = 8
ZLIB_CINFO_32K_WINDOW = 7


def pack_uint32(value: int) -> bytes:
    """Упаковывает 32-битное беззнаковое число (big-endian)"""
    return struct.pack('>I', value)


def build_chunk(chunk_type: bytes, chunk_data: bytes) -> bytes:
    """Создаёт PNG chunk с контрольной суммой CRC32"""
    chunk = chunk_type + chunk_data
    return pack_uint32(len(chunk_data)) + chunk + pack_uint32(crc32(chunk))


def build_ihdr_chunk(width: int, height: int) -> bytes:
    """Создаёт IHDR chunk (заголовок изображения)"""
    data = struct.pack('>II', width, height)  # Ширина и высота (big-endian)
    data += bytes([
        BIT_DEPTH,
        COLOR_TYPE_RGBA,
        0,  # Метод сжатия (deflate)
        0,  # Метод фильтрации
        0,  # Метод чередования (no interlace)
    ])
    return build_chunk(b'IHDR', data)


def build_iend_chunk() -> bytes:
    """Создаёт IEND chunk (конец файла)"""
    return build_chunk(b'IEND', b'')


def build_zlib_header() -> bytes:
    """Создаёт 2-байтовый заголовок zlib (CMF, FLG) без словаря и уровня сжатия"""
    cmf = (ZLIB_CINFO_32K_WINDOW << 4) | ZLIB_CM_DEFLATE
    # FDICT = 0, FLEVEL = 0: наименьший FCHECK, при котором CMF*256 + FLG кратно 31
    fcheck = -(cmf * 256) % 31
    return bytes([cmf, fcheck])


def build_stored_block_header(length: int, final: bool, framing: Framing) -> bytes:
    """Заголовок stored-блока DEFLATE: BFINAL, BTYPE=00 и (в strict) LEN/NLEN"""
    flags = bytes([1 if final else 0])
    if framing is Framing.COMPAT:
        return flags
    return flags + struct.pack('<HH', length, length ^ 0xFFFF)
