import pytest

from climastation.bus import I2CBus
from climastation.font import glyph
from climastation.ssd1306 import HEIGHT, WIDTH, SSD1306, Command

ADDRESS = 0x3C


class RecordingBus(I2CBus):
    def __init__(self):
        self.writes = []

    def write(self, address, data, nostop=False):
        self.writes.append((address, bytes(data), nostop))

    def read(self, address, length, nostop=False):
        return bytes(length)


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def display(bus):
    return SSD1306(WIDTH, HEIGHT, False, ADDRESS, bus)


def test_buffer_layout(display):
    assert len(display.buffer) == display.pages * display.width + 1
    assert display.buffer[0] == 0x40
    assert not any(display.buffer[1:])


def test_pixel_round_trip(display):
    display.pixel(10, 20, True)
    assert display.get_pixel(10, 20)
    assert not display.get_pixel(10, 21)
    display.pixel(10, 20, False)
    assert not display.get_pixel(10, 20)


def test_origin_pixel_sets_first_data_bit(display):
    display.pixel(0, 0, True)
    assert display.buffer[1] == 1
    assert display.buffer[0] == 0x40


def test_pixel_outside_buffer_raises(display):
    with pytest.raises(IndexError):
        display.pixel(255, 255, True)


def test_command_frame():
    recorder = RecordingBus()
    screen = SSD1306(WIDTH, HEIGHT, False, ADDRESS, recorder)
    screen.command(Command.SET_CONTRAST)
    assert recorder.writes == [(ADDRESS, bytes([0x80, 0x81]), False)]


def test_config_sequence_turns_display_off_then_on():
    recorder = RecordingBus()
    screen = SSD1306(WIDTH, HEIGHT, False, ADDRESS, recorder)
    screen.config()
    frames = [data for _, data, _ in recorder.writes]
    sent = [frame[1] for frame in frames]
    assert [frame[0] for frame in frames] == [0x80] * len(frames)
    assert sent[0] == Command.SET_DISP
    assert sent[-1] == Command.SET_DISP | 0x01
    assert sent[sent.index(Command.SET_MUX_RATIO) + 1] == HEIGHT - 1
    assert sent[sent.index(Command.SET_CHARGE_PUMP) + 1] == 0x14


def test_send_data_sets_window_then_writes_buffer(display, bus):
    display.pixel(5, 5, True)
    display.send_data()
    commands = [data[1] for _, data, _ in bus.writes[:-1]]
    assert commands == [
        Command.SET_COL_ADDR, 0, WIDTH - 1,
        Command.SET_PAGE_ADDR, 0, display.pages - 1,
    ]
    assert bus.writes[-1] == (ADDRESS, bytes(display.buffer), False)


def test_fill_sets_and_clears_everything(display):
    display.fill(True)
    assert all(b == 0xFF for b in display.buffer[1:])
    assert display.buffer[0] == 0x40
    display.fill(False)
    assert not any(display.buffer[1:])


def test_rect_outline(display):
    display.rect(10, 20, 8, 6, True, False)
    for x, y in [(20, 10), (27, 10), (20, 15), (27, 15)]:
        assert display.get_pixel(x, y)
    assert not display.get_pixel(23, 12)
    assert not display.get_pixel(28, 10)


def test_rect_filled(display):
    display.rect(10, 20, 8, 6, True, True)
    assert all(
        display.get_pixel(x, y) for x in range(20, 28) for y in range(10, 16)
    )
    assert not display.get_pixel(19, 12)


def test_line_diagonal(display):
    display.line(0, 0, 7, 7, True)
    assert all(display.get_pixel(i, i) for i in range(8))
    lit = sum(display.get_pixel(x, y) for x in range(16) for y in range(16))
    assert lit == 8


def test_line_endpoints_reversed(display):
    display.line(30, 5, 3, 20, True)
    assert display.get_pixel(30, 5)
    assert display.get_pixel(3, 20)


def test_hline_and_vline(display):
    display.hline(2, 9, 4, True)
    assert all(display.get_pixel(x, 4) for x in range(2, 10))
    assert not display.get_pixel(10, 4)
    display.vline(50, 3, 12, True)
    assert all(display.get_pixel(50, y) for y in range(3, 13))
    assert not display.get_pixel(50, 13)


def test_draw_char_matches_glyph(display):
    display.draw_char("A", 16, 8)
    for column, bits in enumerate(glyph("A")):
        for row in range(8):
            assert display.get_pixel(16 + column, 8 + row) == bool(bits & (1 << row))


def test_draw_char_clears_background(display):
    display.fill(True)
    display.draw_char(" ", 0, 0)
    assert not any(display.get_pixel(x, y) for x in range(8) for y in range(8))


def _region(disp, x, y):
    return [disp.get_pixel(x + i, y + j) for i in range(8) for j in range(8)]


def test_draw_string_wraps_to_next_line(display, bus):
    display.draw_string("B" * 16, 0, 0)
    reference = SSD1306(WIDTH, HEIGHT, False, ADDRESS, bus)
    reference.draw_char("B", 0, 8)
    assert _region(display, 0, 8) == _region(reference, 0, 8)
    assert not any(_region(display, 120, 0))


def test_draw_string_stops_near_bottom(display):
    display.draw_string("C" * 40, 0, 48)
    assert any(_region(display, 0, 48))
    assert not any(display.get_pixel(x, y) for x in range(WIDTH) for y in range(56, 64))


def test_draw_string_stops_at_nul(display, bus):
    display.draw_string("D\0E", 0, 0)
    reference = SSD1306(WIDTH, HEIGHT, False, ADDRESS, bus)
    reference.draw_char("D", 0, 0)
    assert display.buffer == reference.buffer