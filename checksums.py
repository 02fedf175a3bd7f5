"""
Контрольные суммы PNG/zlib без использования готовых библиотек.
CRC-32 (полином 0xEDB88320, как в PNG и zlib) и Adler-32.
"""

from typing import Optional, Tuple

CRC32_POLYNOMIAL = 0xEDB88320
CRC32_INIT = 0xFFFFFFFF

ADLER32_INIT = 1
ADLER32_MODULUS = 65521
# Сколько байт можно сложить, прежде чем s2 выйдет за пределы 32 бит
ADLER32_NMAX = 5552


def _build_crc32_table() -> Tuple[int, ...]:
    """Строит таблицу для быстрого вычисления CRC32"""
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ CRC32_POLYNOMIAL
            else:
                crc >>= 1
        table.append(crc)
    return tuple(table)


# Таблица строится один раз при импорте и дальше только читается
CRC32_TABLE = _build_crc32_table()


def crc32_update(state: int, byte: int) -> int:
    """Обновляет регистр CRC32 одним байтом"""
    return CRC32_TABLE[(state ^ byte) & 0xFF] ^ (state >> 8)


def crc32_update_bytes(state: int, data: bytes) -> int:
    """Обновляет регистр CRC32 последовательностью байт"""
    table = CRC32_TABLE
    for byte in data:
        state = table[(state ^ byte) & 0xFF] ^ (state >> 8)
    return state


def crc32_final(state: int) -> int:
    """Финальный XOR регистра"""
    return state ^ 0xFFFFFFFF


def crc32(data: bytes, offset: int = 0, length: Optional[int] = None) -> int:
    """Вычисляет CRC32 контрольную сумму диапазона data[offset:offset + length]"""
    if length is None:
        length = len(data) - offset
    if offset < 0 or length < 0 or offset + length > len(data):
        raise ValueError(f"Диапазон [{offset}, {offset + length}) вне данных длины {len(data)}")
    return crc32_final(crc32_update_bytes(CRC32_INIT, memoryview(data)[offset:offset + length]))


def adler32_update(adler: int, data: bytes) -> int:
    """Обновляет Adler-32 последовательностью байт"""
    s1 = adler & 0xFFFF
    s2 = (adler >> 16) & 0xFFFF
    view = memoryview(data)
    # Берём остаток не на каждом байте, а раз в NMAX байт
    for start in range(0, len(view), ADLER32_NMAX):
        for byte in view[start:start + ADLER32_NMAX]:
            s1 += byte
            s2 += s1
        s1 %= ADLER32_MODULUS
        s2 %= ADLER32_MODULUS
    return (s2 << 16) | s1


def adler32(data: bytes) -> int:
    """Вычисляет Adler-32 контрольную сумму"""
    return adler32_update(ADLER32_INIT, data)
