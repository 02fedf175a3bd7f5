"""
Flask веб-приложение для потоковой выдачи синтетических PNG
"""

from flask import Flask, request, jsonify, Response
import os
import traceback

from errors import PNGStreamError
from pixel_source import BytesPixelSource, SolidColorPixelSource
from png_layout import Framing, plan_layout
from png_stream import SyntheticPNGEncoder

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 64 * 1024 * 1024  # 64MB максимум
app.config['STREAM_CHUNK_SIZE'] = 64 * 1024
# Контрольные суммы считаются на чистом Python до отправки первого байта,
# поэтому лимит держим небольшим: 1 Мпикс - это 4MB пикселей на два прохода
app.config['MAX_PIXELS'] = 1024 * 1024
# strict по умолчанию, чтобы браузер мог показать картинку
app.config['DEFAULT_FRAMING'] = os.environ.get('PNG_FRAMING', Framing.STRICT.value)


def _read_dimensions(values):
    """Читает width/height из формы или query string"""
    width = values.get('width', type=int)
    height = values.get('height', type=int)
    if width is None or height is None:
        raise ValueError('Не указаны width и height')
    if width > 0 and height > 0 and width * height > app.config['MAX_PIXELS']:
        raise ValueError(f'Изображение больше {app.config["MAX_PIXELS"]} пикселей')
    return width, height


def _read_framing(values):
    return Framing.parse(values.get('framing') or app.config['DEFAULT_FRAMING'])


def _parse_color(value):
    """RRGGBB или RRGGBBAA в кортеж RGBA"""
    value = value.lstrip('#')
    if len(value) == 6:
        value += 'ff'
    if len(value) != 8:
        raise ValueError(f'Неверный цвет: {value}')
    try:
        return tuple(bytes.fromhex(value))
    except ValueError:
        raise ValueError(f'Неверный цвет: {value}') from None


def _stream_response(encoder, download_name):
    stream = encoder.open_stream()
    response = Response(stream.iter_chunks(app.config['STREAM_CHUNK_SIZE']), mimetype='image/png')
    response.headers['Content-Length'] = str(encoder.total_size)
    response.headers['Content-Disposition'] = f'inline; filename={download_name}'
    response.headers['Cache-Control'] = 'no-cache'
    response.headers['X-Accel-Buffering'] = 'no'
    return response


@app.route('/api/layout', methods=['GET'])
def get_layout():
    """Возвращает раскладку файла для заданных размеров"""
    try:
        width, height = _read_dimensions(request.args)
        layout = plan_layout(width, height, _read_framing(request.args))
        return jsonify(layout.to_dict())
    except (PNGStreamError, ValueError) as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        print(f"Ошибка вычисления раскладки:")
        print(traceback.format_exc())
        return jsonify({'error': f'Ошибка обработки: {str(e)}'}), 500


@app.route('/api/encode', methods=['POST'])
def encode_pixels():
    """Кодирует загруженный буфер RGBA в PNG и отдаёт его потоком"""
    if 'pixels' not in request.files:
        return jsonify({'error': 'Буфер пикселей не загружен'}), 400

    try:
        width, height = _read_dimensions(request.form)
        offset = request.form.get('offset', default=0, type=int)
        framing = _read_framing(request.form)
        # Читаем файл в память ДО начала генерации, чтобы он не был закрыт
        pixel_data = request.files['pixels'].read()
        encoder = SyntheticPNGEncoder(width, height, BytesPixelSource(pixel_data), offset, framing)
    except (PNGStreamError, ValueError) as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        print(f"Ошибка кодирования буфера:")
        print(traceback.format_exc())
        return jsonify({'error': f'Ошибка обработки: {str(e)}'}), 500

    return _stream_response(encoder, f'image_{width}x{height}.png')


@app.route('/api/solid', methods=['GET'])
def solid_color():
    """Отдаёт потоком PNG одного цвета без буфера пикселей"""
    try:
        width, height = _read_dimensions(request.args)
        color = _parse_color(request.args.get('color', '000000ff'))
        framing = _read_framing(request.args)
        encoder = SyntheticPNGEncoder(width, height, SolidColorPixelSource(color), framing=framing)
    except (PNGStreamError, ValueError) as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        print(f"Ошибка генерации изображения:")
        print(traceback.format_exc())
        return jsonify({'error': f'Ошибка обработки: {str(e)}'}), 500

    return _stream_response(encoder, f'solid_{width}x{height}.png')


if __name__ == '__main__':
    # Для Docker используем 0.0.0.0, чтобы принимать подключения извне
    app.run(debug=True, host='0.0.0.0', port=5000)
