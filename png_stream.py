"""
Ленивый потоковый кодировщик синтетического PNG.

Файл не собирается в памяти целиком: байты IHDR/IEND берутся из
заранее построенных массивов, а тело IDAT (заголовок zlib, заголовки
stored-блоков, байты фильтра и пиксели) синтезируется по запросу,
строго вперёд, по абсолютной позиции в потоке.
"""

from typing import Iterator, NamedTuple, Optional, Union

from checksums import (
    ADLER32_INIT,
    CRC32_INIT,
    adler32_update,
    crc32_final,
    crc32_update_bytes,
)
from errors import (
    InternalInconsistencyError,
    PixelSourceError,
    UnsupportedOperationError,
)
from pixel_source import PixelSource
from png_chunks import (
    PNG_SIGNATURE,
    build_iend_chunk,
    build_ihdr_chunk,
    build_stored_block_header,
    build_zlib_header,
    pack_uint32,
)
from png_layout import (
    BYTES_PER_PIXEL,
    ZLIB_HEADER_SIZE,
    ChunkKind,
    Framing,
    Layout,
    plan_layout,
)

FILTER_NONE = b'\x00'
IDAT_HEAD_SIZE = 8  # длина (4) + тип (4)
CHECKSUM_RUN_SIZE = 64 * 1024
DEFAULT_CHUNK_SIZE = 64 * 1024


class ChunkBuffers(NamedTuple):
    """Заранее вычисленные фиксированные участки и контрольные суммы"""

    signature: bytes
    ihdr: bytes
    zlib_header: bytes
    idat_head: bytes
    iend: bytes
    adler32: int
    idat_crc32: int


class PayloadCursor:
    """Курсор по логическим несжатым данным: байт фильтра + RGBA каждой строки"""

    def __init__(self, source: PixelSource, width: int, height: int, offset: int = 0):
        self.source = source
        self.width = width
        self.offset = offset
        self.row_size = 1 + width * BYTES_PER_PIXEL
        self.size = height * self.row_size
        self.position = 0

    @property
    def remaining(self) -> int:
        return self.size - self.position

    def read(self, max_length: int) -> bytes:
        """Возвращает следующий непрерывный участок, не пересекая границу строки"""
        if max_length <= 0 or self.position >= self.size:
            return b''

        row, column = divmod(self.position, self.row_size)
        if column == 0:
            run = FILTER_NONE
        else:
            count = min(max_length, self.row_size - column)
            address = self.offset + row * self.width * BYTES_PER_PIXEL + (column - 1)
            run = self.source.read_bytes(address, count)
            if len(run) != count:
                raise PixelSourceError(
                    f"Источник вернул {len(run)} байт вместо {count} по адресу {address}"
                )

        self.position += len(run)
        return run


class IdatBodyCursor:
    """Курсор по данным chunk'а IDAT: заголовок zlib, stored-блоки, трейлер"""

    def __init__(self, layout: Layout, payload: PayloadCursor, zlib_header: bytes, trailer: bytes):
        if len(trailer) != layout.trailer_size:
            raise InternalInconsistencyError(
                f"Трейлер IDAT {len(trailer)} байт, по раскладке {layout.trailer_size}"
            )
        self.layout = layout
        self.payload = payload
        self.zlib_header = zlib_header
        self.trailer = trailer
        self.offset = 0

    @property
    def remaining(self) -> int:
        return self.layout.idat_data_length - self.offset

    def read(self, max_length: int) -> bytes:
        if max_length <= 0 or self.remaining <= 0:
            return b''

        layout = self.layout
        if self.offset < ZLIB_HEADER_SIZE:
            run = self.zlib_header[self.offset:ZLIB_HEADER_SIZE][:max_length]
        else:
            compressed_offset = self.offset - ZLIB_HEADER_SIZE
            if compressed_offset < layout.compressed_size:
                run = self._read_block(compressed_offset, max_length)
            else:
                trailer_offset = compressed_offset - layout.compressed_size
                run = self.trailer[trailer_offset:trailer_offset + max_length]

        self.offset += len(run)
        return run

    def _read_block(self, compressed_offset: int, max_length: int) -> bytes:
        layout = self.layout
        index, within = divmod(compressed_offset, layout.block_stride)
        block_length = layout.block_length(index)

        if within < layout.block_header_size:
            final = index == layout.block_count - 1
            header = build_stored_block_header(block_length, final, layout.framing)
            return header[within:within + max_length]

        local = within - layout.block_header_size
        if local < block_length:
            expected = index * layout.block_payload_size + local
            if self.payload.position != expected:
                raise InternalInconsistencyError(
                    f"Курсор пикселей на {self.payload.position}, ожидалось {expected}"
                )
            return self.payload.read(min(max_length, block_length - local))

        # Хвост последнего слота в режиме compat заполняется нулями
        return bytes(min(max_length, layout.block_payload_size - local))


def compute_payload_adler32(source: PixelSource, width: int, height: int, offset: int = 0) -> int:
    """Adler-32 несжатых данных: для каждой строки байт фильтра 0 и RGBA"""
    payload = PayloadCursor(source, width, height, offset)
    adler = ADLER32_INIT
    while True:
        run = payload.read(CHECKSUM_RUN_SIZE)
        if not run:
            break
        adler = adler32_update(adler, run)
    return adler


def compute_idat_crc32(body: IdatBodyCursor) -> int:
    """CRC32 по типу 'IDAT' и всем байтам, которые выдаст курсор тела"""
    state = crc32_update_bytes(CRC32_INIT, b'IDAT')
    while True:
        run = body.read(CHECKSUM_RUN_SIZE)
        if not run:
            break
        state = crc32_update_bytes(state, run)
    if body.remaining != 0:
        raise InternalInconsistencyError(f"Тело IDAT недочитано на {body.remaining} байт")
    return crc32_final(state)


class SyntheticPNGEncoder:
    """
    Кодировщик RGBA8888 изображения в PNG со stored-блоками DEFLATE.

    При создании вычисляет раскладку, фиксированные chunk'и и контрольные
    суммы (два логических прохода по пикселям). Сам файл выдаётся потоками
    PNGStream, каждый со своим курсором.
    """

    def __init__(self, width: int, height: int, source: PixelSource, offset: int = 0,
                 framing: Union[Framing, str] = Framing.COMPAT):
        self.layout = plan_layout(width, height, framing)
        self.width = width
        self.height = height
        self.source = source
        self.offset = offset
        self._check_source()

        layout = self.layout
        zlib_header = build_zlib_header()
        adler = compute_payload_adler32(source, width, height, offset)
        self._trailer = pack_uint32(adler) if layout.trailer_size else b''

        # CRC считается тем же курсором, которым потом выдаётся поток
        idat_crc = compute_idat_crc32(self._open_idat_body(zlib_header))

        self.buffers = ChunkBuffers(
            signature=PNG_SIGNATURE if layout.signature_size else b'',
            ihdr=build_ihdr_chunk(width, height),
            zlib_header=zlib_header,
            idat_head=pack_uint32(layout.idat_data_length) + b'IDAT',
            iend=build_iend_chunk(),
            adler32=adler,
            idat_crc32=idat_crc,
        )
        self._idat_crc_bytes = pack_uint32(idat_crc)
        self._fixed = {
            ChunkKind.SIGNATURE: self.buffers.signature,
            ChunkKind.IHDR: self.buffers.ihdr,
            ChunkKind.IEND: self.buffers.iend,
        }
        for kind, _, size in layout.regions():
            if kind in self._fixed and len(self._fixed[kind]) != size:
                raise InternalInconsistencyError(f"Размер {kind.value} не совпадает с раскладкой")

    def _check_source(self):
        if self.offset < 0:
            raise PixelSourceError(f"Смещение пикселей не может быть отрицательным: {self.offset}")
        if hasattr(self.source, '__len__'):
            required = self.offset + self.width * self.height * BYTES_PER_PIXEL
            if len(self.source) < required:
                raise PixelSourceError(
                    f"Источник содержит {len(self.source)} байт, требуется {required}"
                )

    def _open_idat_body(self, zlib_header: Optional[bytes] = None) -> IdatBodyCursor:
        payload = PayloadCursor(self.source, self.width, self.height, self.offset)
        if zlib_header is None:
            zlib_header = self.buffers.zlib_header
        return IdatBodyCursor(self.layout, payload, zlib_header, self._trailer)

    @property
    def total_size(self) -> int:
        return self.layout.total_size

    def fixed_chunk(self, kind: ChunkKind) -> bytes:
        return self._fixed[kind]

    @property
    def idat_crc_bytes(self) -> bytes:
        return self._idat_crc_bytes

    def open_stream(self) -> 'PNGStream':
        """Открывает новый поток с начала файла"""
        return PNGStream(self)


class PNGStream:
    """
    Последовательный поток байт PNG файла.

    Состояние: абсолютная позиция, текущий chunk и смещение внутри него,
    курсор по несжатым данным. Перемотка не поддерживается.
    """

    def __init__(self, encoder: SyntheticPNGEncoder):
        self._encoder = encoder
        self._layout = encoder.layout
        self._regions = self._layout.regions()
        self._region_index = 0
        self._idat_body = encoder._open_idat_body()
        self._closed = False
        self.position = 0
        self.chunk_local_offset = 0

    @property
    def layout(self) -> Layout:
        return self._layout

    @property
    def current_chunk(self) -> ChunkKind:
        if self._closed or self._region_index >= len(self._regions):
            return ChunkKind.EXHAUSTED
        return self._regions[self._region_index][0]

    @property
    def pixel_cursor(self) -> int:
        """Позиция в логических несжатых данных"""
        return self._idat_body.payload.position

    @property
    def closed(self) -> bool:
        return self._closed

    def bytes_available(self) -> int:
        if self._closed:
            return 0
        return self._layout.total_size - self.position

    def _produce(self, max_length: int) -> bytes:
        kind, start, size = self._regions[self._region_index]
        local = self.chunk_local_offset
        max_length = min(max_length, size - local)

        if kind is ChunkKind.IDAT:
            run = self._read_idat(local, max_length)
        else:
            run = self._encoder.fixed_chunk(kind)[local:local + max_length]

        if not run:
            raise InternalInconsistencyError(f"Пустой участок на позиции {self.position} в {kind.value}")

        self.position += len(run)
        self.chunk_local_offset += len(run)
        if self.chunk_local_offset == size:
            self._enter_next_chunk()
        return run

    def _enter_next_chunk(self):
        self._region_index += 1
        self.chunk_local_offset = 0
        if self._region_index < len(self._regions):
            kind, start, _ = self._regions[self._region_index]
            if self.position != start:
                raise InternalInconsistencyError(
                    f"Переход в {kind.value} на позиции {self.position}, а chunk начинается с {start}"
                )
        elif self.position != self._layout.total_size:
            raise InternalInconsistencyError(
                f"Поток закончился на {self.position}, ожидалось {self._layout.total_size}"
            )

    def _read_idat(self, local: int, max_length: int) -> bytes:
        if local < IDAT_HEAD_SIZE:
            return self._encoder.buffers.idat_head[local:local + max_length]

        body_offset = local - IDAT_HEAD_SIZE
        data_length = self._layout.idat_data_length
        if body_offset < data_length:
            if self._idat_body.offset != body_offset:
                raise InternalInconsistencyError(
                    f"Курсор IDAT на {self._idat_body.offset}, ожидалось {body_offset}"
                )
            return self._idat_body.read(min(max_length, data_length - body_offset))

        crc_offset = body_offset - data_length
        return self._encoder.idat_crc_bytes[crc_offset:crc_offset + max_length]

    def read_one(self) -> Optional[int]:
        """Читает один байт; None - конец потока"""
        if self.bytes_available() == 0:
            return None
        return self._produce(1)[0]

    def read_many(self, max_length: int) -> bytes:
        """Читает до max_length байт; b'' - конец потока"""
        if max_length < 0:
            raise ValueError(f"Отрицательная длина чтения: {max_length}")
        runs = []
        wanted = min(max_length, self.bytes_available())
        while wanted > 0:
            run = self._produce(wanted)
            runs.append(run)
            wanted -= len(run)
        return b''.join(runs)

    def read(self, size: Optional[int] = -1) -> bytes:
        """Чтение в стиле файлового объекта: без аргумента - до конца"""
        if size is None or size < 0:
            size = self.bytes_available()
        return self.read_many(size)

    def readinto(self, buffer, offset: int = 0, max_length: Optional[int] = None) -> int:
        """Записывает байты в buffer[offset:], возвращает их количество (0 - конец)"""
        view = memoryview(buffer).cast('B')
        if offset < 0 or offset > len(view):
            raise ValueError(f"Смещение {offset} вне буфера длины {len(view)}")
        room = len(view) - offset
        if max_length is None or max_length > room:
            max_length = room
        data = self.read_many(max_length)
        view[offset:offset + len(data)] = data
        return len(data)

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Генератор кусков до конца потока"""
        if chunk_size <= 0:
            raise ValueError(f"Размер куска должен быть положительным: {chunk_size}")
        while True:
            data = self.read_many(chunk_size)
            if not data:
                return
            yield data

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def tell(self) -> int:
        return self.position

    def mark_supported(self) -> bool:
        return False

    def mark(self, read_limit: int = 0):
        raise UnsupportedOperationError("Поток не поддерживает mark")

    def reset(self):
        raise UnsupportedOperationError("Поток не поддерживает reset")

    def seek(self, offset: int, whence: int = 0):
        raise UnsupportedOperationError("Поток не поддерживает seek")

    def close(self):
        self._closed = True

    def __enter__(self) -> 'PNGStream':
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def open_png_stream(width: int, height: int, source: PixelSource, offset: int = 0,
                    framing: Union[Framing, str] = Framing.COMPAT) -> PNGStream:
    """Создаёт кодировщик и открывает поток"""
    return SyntheticPNGEncoder(width, height, source, offset, framing).open_stream()
