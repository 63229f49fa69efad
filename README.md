# climastation

`climastation` holds the logic of a small environmental monitoring station:

- decoding and compensating **BMP280** pressure and temperature readings,
- decoding **AHT20** temperature and humidity measurements,
- an in-memory **SSD1306** monochrome framebuffer with pixels, lines,
  rectangles and an 8×8 bitmap font,
- threshold analysis that picks an alarm state, with its LED matrix
  drawing, RGB LED state and buzzer behaviour,
- an HTTP monitoring interface that serves live readings, charts,
  configurable limits and calibration offsets.

It has no dependencies outside the standard library.

## The I2C bus

Sensors and the display talk through a `climastation.bus.I2CBus` object
that you supply. `I2CBus` is an abstract class with two methods:
`write(address, data, nostop)` and `read(address, length, nostop)`, the
latter returning `bytes`. Failures are reported by raising
`climastation.bus.I2CError`, a subclass of `OSError`. Anything that
implements the two methods can drive the package: a bus adapter, a
recorder for tests, or a simulated device.

## Sensors

```python
import time

from climastation.bmp280 import BMP280, convert_pressure, convert_temperature
from climastation.aht20 import AHT20

bmp = BMP280(bus, 0x76)
bmp.init()
params = bmp.read_calibration()
raw_temp, raw_pressure = bmp.read_raw()

temperature_centi_c = convert_temperature(raw_temp, params)   # e.g. 2508 -> 25.08 °C
pressure_pa = convert_pressure(raw_pressure, raw_temp, params)

aht = AHT20(bus, 0x38, time.sleep)
aht.reset()
reading = aht.read()          # Reading(temperature=..., humidity=...)
```

- `BMP280.init()` programs the filter, standby time, oversampling and
  normal mode; `reset()` issues a soft reset.
- `convert_pressure` returns 0 when the calibration would divide by zero.
- `AHT20.init()` and `AHT20.reset()` return `True` once the sensor reports
  itself calibrated. `AHT20.read()` raises `I2CError` if the sensor stays
  busy or returns a short frame. `AHT20.check()` returns whether the
  sensor answers a one-byte read.

The functions `parse_calibration`, `parse_raw` and `fine_temperature` (in
`climastation.bmp280`) and `parse_measurement` (in `climastation.aht20`)
work on raw bytes and need no bus. They raise `ValueError` for blocks of
the wrong length. The compensation uses the datasheets' 32-bit fixed-point
integer arithmetic.

## Display

```python
from climastation.ssd1306 import SSD1306

display = SSD1306(128, 64, False, 0x3C, bus)
display.config()
display.fill(False)
display.rect(0, 0, 128, 64, True, False)
display.draw_string("Temp 25.1C", 8, 8)
display.line(0, 63, 127, 0, True)
display.send_data()
```

`rect(top, left, width, height, value, fill)` draws an outline and
optionally fills it; `hline` and `vline` include both end points.
`get_pixel(x, y)` reads the framebuffer back, and drawing outside it
raises `IndexError`. `draw_string` wraps to the next row of characters at
the right edge and stops near the bottom. `Command` lists the controller
opcodes, and `command(opcode)` sends one.

`climastation.font.glyph(char)` returns the eight column bytes of a
printable ASCII character; any other character is drawn as a blank.

## Alarms

All of this lives in `climastation.monitor`.

`analyse(reading, pressure_pa, limits, offsets)` adds the calibration
offsets (the pressure offset is in hPa) and checks the limits in a fixed
order: high temperature, low temperature, high humidity, low humidity,
high pressure, low pressure. The first limit exceeded gives the `Alarm`;
otherwise `Alarm.NORMAL` is returned. Each `Alarm` carries a `message`, a
`colour`, the states of the red, green and blue LEDs (`leds`), its 5×5
`pattern`, and `frame()`, the 25 GRB words for the LED matrix. `active`
is true for every state except `NORMAL`.

The default `Limits` are 5–55 °C, 30–70 % relative humidity and
950–1050 hPa. The default `Offsets` are zero.

- `Buzzer`: `trigger(now_us)` starts a burst, `update(now_us)` toggles it
  every 250 ms and returns the PWM level to drive (250 or 0), and the
  burst ends by itself after eight toggles. `silence()` stops it at once.
- `PageSelector.press(now_us)` cycles through pages 0 to 3, ignoring
  presses less than 250 ms apart, and returns whether the press counted.
- `calculate_altitude(pressure)` gives the altitude in metres from a
  pressure in pascals, relative to 101325 Pa.
- `urgb_u32(r, g, b)` packs a colour into a WS2812 GRB word, and
  `pattern_frame(pattern, r, g, b)` turns a 25-cell pattern into words.

## Web interface

```python
from climastation.server import MonitorServer, MonitorState

state = MonitorState()
with MonitorServer(state, "0.0.0.0", 8080) as server:
    server.serve_forever()
```

`MonitorServer` answers one request per connection from its own threads.
`shutdown()` stops it and closes the socket, and leaving the `with` block
calls it.

Routes are matched by substring, in this order:

| Route              | Response                                                              |
|--------------------|-----------------------------------------------------------------------|
| `GET /dados`       | JSON: corrected temperature, humidity, pressure in Pa, ms timestamp   |
| `GET /temp`        | temperature chart                                                     |
| `GET /umid`        | humidity chart                                                        |
| `GET /press`       | pressure chart                                                        |
| `GET /offset`      | calibration page                                                      |
| `POST /setoffset`  | form body `temp_offset=..&umid_offset=..&press_offset=..`             |
| `GET /getoffset`   | JSON with the current offsets                                         |
| `POST /config`     | form body `temp_min=..&temp_max=..&umid_min=..&umid_max=..&press_min=..&press_max=..` |
| `GET /config`      | JSON with the current limits                                          |
| `GET /pagina`      | JSON with the page the selector currently shows                       |
| anything else      | the HTML of the page the selector currently shows                     |

`handle_request(request, state, now_ms)` turns one raw HTTP request into
the complete response bytes, so the routing works without a socket.
`parse_offsets(body, offsets)` and `parse_config(body, limits)` apply a
form body and return how many values they set; `parse_config` expects the
fields in the order above and stops at the first that does not match.
`climastation.pages.html_for(page)` returns the HTML of a `Page`; unknown
page numbers give the home page.

## The measurement loop

`climastation.station.Station(bmp, aht, state)` initialises both sensors
and reads the BMP280 calibration. Each call to `step(now_us)` advances the
buzzer, reads both sensors, stores the readings in the shared
`MonitorState`, runs the alarm analysis and returns a `StepResult` with
the temperature, pressure, altitude, reading, alarm, LED matrix `frame`
and buzzer level. A failed AHT20 read leaves `reading` and `alarm` as
`None`. Share the same `MonitorState` with a `MonitorServer` to publish
the readings, and call `step` about every half second.

## What the package does not do

- It has no command-line program; you build the loop and the server in
  your own code.
- It ships no `I2CBus` implementation for real hardware; you supply one.
- It does not drive LEDs, buzzers, buttons or a network connection itself.
  It computes the LED words, indicator states and buzzer levels, and
  `PageSelector` expects you to call `press()` on a button event.