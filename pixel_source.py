"""
Источники пикселей RGBA8888 с побайтовой адресацией.
Кодировщик только читает их, последовательно и вперёд.
"""

from typing import Callable, Sequence, Union

from errors import PixelSourceError


class PixelSource:
    """Базовый источник: плоское адресное пространство байт"""

    def read_byte(self, address: int) -> int:
        raise NotImplementedError

    def read_bytes(self, address: int, length: int) -> bytes:
        """Читает length байт начиная с address"""
        return bytes(self.read_byte(address + i) for i in range(length))


class BytesPixelSource(PixelSource):
    """Источник поверх bytes / bytearray / memoryview"""

    def __init__(self, buffer: Union[bytes, bytearray, memoryview]):
        self._buffer = memoryview(buffer).cast('B')

    def __len__(self) -> int:
        return len(self._buffer)

    def _check_range(self, address: int, length: int):
        if address < 0 or address + length > len(self._buffer):
            raise PixelSourceError(
                f"Чтение [{address}, {address + length}) за пределами буфера длины {len(self._buffer)}"
            )

    def read_byte(self, address: int) -> int:
        self._check_range(address, 1)
        return self._buffer[address]

    def read_bytes(self, address: int, length: int) -> bytes:
        self._check_range(address, length)
        return self._buffer[address:address + length].tobytes()


class SolidColorPixelSource(PixelSource):
    """Бесконечное изображение одного цвета; адрес 0 - канал R"""

    def __init__(self, rgba: Sequence[int]):
        if len(rgba) != 4 or any(not 0 <= channel <= 255 for channel in rgba):
            raise PixelSourceError(f"Цвет должен состоять из 4 байт RGBA, получено {rgba!r}")
        self.rgba = bytes(rgba)

    def read_byte(self, address: int) -> int:
        return self.rgba[address % 4]

    def read_bytes(self, address: int, length: int) -> bytes:
        phase = address % 4
        repeats = (phase + length) // 4 + 1
        return (self.rgba * repeats)[phase:phase + length]


class FunctionPixelSource(PixelSource):
    """Обёртка над функцией address -> byte"""

    def __init__(self, read_byte: Callable[[int], int]):
        self._read_byte = read_byte

    def read_byte(self, address: int) -> int:
        value = self._read_byte(address)
        if not 0 <= value <= 255:
            raise PixelSourceError(f"По адресу {address} получено значение {value}, ожидался байт")
        return value
