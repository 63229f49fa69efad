"""HTML pages served by the embedded monitoring web interface."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from string import Template


class Page(IntEnum):
    """Pages of the web interface, numbered as the page selector reports them."""

    HOME = 0
    TEMPERATURE = 1
    HUMIDITY = 2
    PRESSURE = 3
    OFFSET = 4

    @property
    def path(self) -> str:
        """The URL path that serves this page."""
        return _PATHS[self]


_PATHS = {
    Page.HOME: "/",
    Page.TEMPERATURE: "/temp",
    Page.HUMIDITY: "/umid",
    Page.PRESSURE: "/press",
    Page.OFFSET: "/offset",
}

_BUTTON_PAGES = (Page.HOME, Page.TEMPERATURE, Page.HUMIDITY, Page.PRESSURE)

Styles = list[tuple[str, dict[str, str]]]


def _css(rules: Styles) -> str:
    """Render (selector, properties) pairs as a style sheet."""
    return "\n".join(
        selector + " { " + " ".join(f"{key}: {value};" for key, value in props.items()) + " }"
        for selector, props in rules
    )


def _document(title: str, styles: Styles, body: str, script: str, *, viewport: bool = True) -> str:
    head = ['<meta charset="UTF-8">']
    if viewport:
        head.append('<meta name="viewport" content="width=device-width,initial-scale=1">')
    head.append(f"<title>{title}</title>")
    return "\n".join(
        [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            *head,
            "<style>",
            _css(styles),
            "</style>",
            "</head>",
            "<body>",
            body,
            "<script>",
            script,
            "</script>",
            "</body></html>",
        ]
    )


def _page_watch(own_page: Page, known: tuple[Page, ...]) -> str:
    """Script that polls /pagina and follows the button-selected page."""
    redirects = [
        f"      if (d.pagina == {page.value}) window.location.href = '{page.path}';"
        for page in known
    ]
    return "\n".join(
        [
            f"let minhaPagina = {own_page.value};",
            "setInterval(() => {",
            "  fetch('/pagina').then(r => r.json()).then(d => {",
            "    if (d.pagina !== minhaPagina) {",
            *redirects,
            "    }",
            "  });",
            "}, 1000);",
        ]
    )


def _links(links: tuple[tuple[str, str], ...]) -> str:
    return "".join(f'<a href="{href}">{label}</a>' for href, label in links)


# ---------------------------------------------------------------- home page

_LIMIT_GROUPS = (("temp", "Temp"), ("umid", "Umid"), ("press", "Press"))
_LIMIT_FIELDS = tuple(f"{key}_{bound}" for key, _ in _LIMIT_GROUPS for bound in ("min", "max"))


def _home() -> str:
    styles: Styles = [
        ("body", {"font-family": "Arial,sans-serif", "margin": "20px", "background": "#f0f0f0"}),
        ("h1", {"color": "#333", "text-align": "center"}),
        ("a", {
            "display": "block", "margin": "10px 0", "padding": "15px",
            "background": "#007bff", "color": "white", "text-decoration": "none",
            "border-radius": "5px", "text-align": "center",
        }),
        ("a:hover", {"background": "#0056b3"}),
        (".config", {"background": "#fff", "padding": "20px", "border-radius": "10px", "margin": "20px 0"}),
        (".config input", {"margin": "5px", "padding": "8px", "width": "100px"}),
        (".config button", {
            "background": "#28a745", "color": "white", "padding": "10px 20px",
            "border": "none", "border-radius": "5px", "cursor": "pointer",
        }),
        (".config button:hover", {"background": "#218838"}),
    ]
    rows = []
    for key, label in _LIMIT_GROUPS:
        inputs = "".join(
            f'<label>{label} {bound.capitalize()}: '
            f'<input type="number" id="{key}_{bound}" step="0.1"></label>'
            for bound in ("min", "max")
        )
        rows.append(inputs + "<br>")
    body = "\n".join(
        [
            "<h1>Sistema de Monitoramento</h1>",
            _links(
                (
                    ("/temp", "Ver Temperatura"),
                    ("/umid", "Ver Umidade"),
                    ("/press", "Ver Pressao"),
                    ("/offset", "Calibrar Offset"),
                )
            ),
            '<div class="config">',
            "<h3>Configurar Limites</h3>",
            '<form id="configForm">',
            *rows,
            '<button type="submit">Salvar Configurações</button>',
            "</form>",
            "</div>",
        ]
    )
    field_list = ", ".join(f"'{name}'" for name in _LIMIT_FIELDS)
    script = "\n".join(
        [
            _page_watch(Page.HOME, _BUTTON_PAGES),
            f"const limites = [{field_list}];",
            "fetch('/config').then(r => r.json()).then(d => {",
            "  limites.forEach(k => { document.getElementById(k).value = d[k]; });",
            "});",
            "document.getElementById('configForm').addEventListener('submit', function (e) {",
            "  e.preventDefault();",
            "  const data = limites.map(k => k + '=' + document.getElementById(k).value).join('&');",
            "  fetch('/config', {method: 'POST', body: data}).then(r => r.json()).then(d => {",
            "    alert('Configurações salvas!');",
            "  });",
            "});",
        ]
    )
    return _document("Sistema de Monitoramento", styles, body, script)


# -------------------------------------------------------------- offset page

_OFFSET_INPUTS = (
    ("toff", "temp_offset", "Temperatura"),
    ("uoff", "umid_offset", "Umidade"),
    ("poff", "press_offset", "Pressao"),
)
_OFFSET_READINGS = (
    ("temp", "Temperatura", " C"),
    ("umid", "Umidade", "%"),
    ("press", "Pressao", "hPa"),
)


def _offset() -> str:
    styles: Styles = [
        ("body", {"font-family": "sans-serif", "background": "#fdfdfd", "margin": "20px", "color": "#222"}),
        ("h2,h3", {"margin-bottom": "10px"}),
        ("form p", {"margin": "6px 0"}),
        ("input", {"width": "80px", "padding": "4px"}),
        ("button", {"padding": "4px 8px", "margin-right": "8px"}),
    ]
    body = "\n".join(
        [
            "<h2>Calibracao de Sensores</h2>",
            "<p>Valores atuais:</p>",
            *(
                f'<p>{label}: <span id="{ident}">--</span>{unit}</p>'
                for ident, label, unit in _OFFSET_READINGS
            ),
            "<hr>",
            "<h3>Ajustar Offset</h3>",
            '<form id="form">',
            *(
                f'<p>Offset {label}: <input type="number" id="{ident}" step="0.1" value="0"></p>'
                for ident, _, label in _OFFSET_INPUTS
            ),
            '<button type="submit">Salvar</button>',
            '<button type="button" onclick="zerar()">Zerar Tudo</button>',
            "</form>",
            '<p><a href="/">Voltar</a></p>',
        ]
    )
    fields = ", ".join(f"{ident}: '{name}'" for ident, name, _ in _OFFSET_INPUTS)
    zeroed = "&".join(f"{name}=0" for _, name, _ in _OFFSET_INPUTS)
    script = "\n".join(
        [
            _page_watch(Page.OFFSET, _BUTTON_PAGES + (Page.OFFSET,)),
            f"const campos = {{{fields}}};",
            "function atualizar() {",
            "  fetch('/dados').then(r => r.json()).then(d => {",
            "    document.getElementById('temp').innerText = d.temperatura.toFixed(1);",
            "    document.getElementById('umid').innerText = d.umidade.toFixed(1);",
            "    document.getElementById('press').innerText = (d.pressao / 100).toFixed(1);",
            "  });",
            "}",
            "function enviarOffsets(data) {",
            "  return fetch('/setoffset', {method: 'POST',",
            "    headers: {'Content-Type': 'application/x-www-form-urlencoded'},",
            "    body: data}).then(r => r.json());",
            "}",
            "function zerar() {",
            "  Object.keys(campos).forEach(id => { document.getElementById(id).value = '0'; });",
            f"  enviarOffsets('{zeroed}').then(d => {{ alert('Offsets zerados!'); }});",
            "}",
            "document.getElementById('form').onsubmit = function (e) {",
            "  e.preventDefault();",
            "  const data = Object.entries(campos)",
            "    .map(([id, k]) => k + '=' + encodeURIComponent(document.getElementById(id).value))",
            "    .join('&');",
            "  enviarOffsets(data).then(d => { alert('Salvo!'); }).catch(e => {});",
            "};",
            "fetch('/getoffset').then(r => r.json()).then(d => {",
            "  Object.entries(campos).forEach(([id, k]) => { document.getElementById(id).value = d[k]; });",
            "});",
            "setInterval(atualizar, 1000);",
            "atualizar();",
        ]
    )
    return _document("Calibracao", styles, body, script, viewport=False)


# --------------------------------------------------------------- chart pages


@dataclass(frozen=True)
class _Chart:
    title: str
    heading: str
    unit: str
    colour: str
    hover: str
    value: str
    links: tuple[tuple[str, str], ...]


_CHART_SCRIPT = Template(
    """$watch
const historico = [];
const instantes = [];
const inicio = Date.now();
function atualizar() {
  fetch('/dados').then(r => r.json()).then(d => {
    const v = $value;
    document.getElementById('valor').innerText = v.toFixed(1);
    historico.push(v);
    instantes.push((Date.now() - inicio) / 1000);
    if (historico.length > 50) { historico.shift(); instantes.shift(); }
    desenhar();
  });
}
function desenhar() {
  const c = document.getElementById('grafico');
  const ctx = c.getContext('2d');
  ctx.clearRect(0, 0, c.width, c.height);
  if (historico.length < 2) return;
  const baixo = Math.min(...historico) - 5;
  const alto = Math.max(...historico) + 5;
  const t0 = Math.min(...instantes);
  const t1 = Math.max(...instantes);
  ctx.strokeStyle = '#ccc';
  ctx.lineWidth = 1;
  for (let i = 0; i <= 5; i++) {
    const y = c.height - ((i / 5) * (c.height - 40)) - 20;
    ctx.beginPath();
    ctx.moveTo(40, y);
    ctx.lineTo(c.width - 20, y);
    ctx.stroke();
    ctx.fillStyle = '#666';
    ctx.font = '12px Arial';
    ctx.fillText((baixo + (alto - baixo) * i / 5).toFixed(1) + '$unit', 5, y + 3);
  }
  ctx.beginPath();
  ctx.strokeStyle = '$colour';
  ctx.lineWidth = 2;
  historico.forEach((v, i) => {
    const x = 40 + (instantes[i] - t0) / (t1 - t0) * (c.width - 60);
    const y = c.height - 20 - ((v - baixo) / (alto - baixo)) * (c.height - 40);
    if (i === 0) ctx.moveTo(x, y); else ctx.lineTo(x, y);
  });
  ctx.stroke();
  ctx.fillStyle = '#666';
  ctx.font = '12px Arial';
  ctx.fillText('Tempo (s)', c.width / 2 - 30, c.height - 5);
}
setInterval(atualizar, 500);
atualizar();"""
)

_CHARTS = {
    Page.TEMPERATURE: _Chart(
        title="Temperatura",
        heading="Temperatura",
        unit="°C",
        colour="#007bff",
        hover="#0056b3",
        value="d.temperatura",
        links=(("/umid", "Umidade"), ("/press", "Pressao"), ("/", "Inicio")),
    ),
    Page.HUMIDITY: _Chart(
        title="Umidade",
        heading="Umidade",
        unit="%",
        colour="#28a745",
        hover="#218838",
        value="d.umidade",
        links=(("/temp", "Temperatura"), ("/press", "Pressao"), ("/", "Inicio")),
    ),
    Page.PRESSURE: _Chart(
        title="Pressao",
        heading="Pressao Atmosferica",
        unit=" hPa",
        colour="#dc3545",
        hover="#c82333",
        value="d.pressao/100",
        links=(("/temp", "Temperatura"), ("/umid", "Umidade"), ("/", "Inicio")),
    ),
}


def _render_chart(page: Page, chart: _Chart) -> str:
    styles: Styles = [
        ("body", {"font-family": "Arial,sans-serif", "margin": "20px", "background": "#f0f0f0"}),
        ("h2", {"color": "#333", "text-align": "center"}),
        ("#valor", {"font-size": "24px", "font-weight": "bold", "color": chart.colour}),
        ("canvas", {"border": "1px solid #ccc", "margin": "20px 0"}),
        ("a", {
            "display": "inline-block", "margin": "10px 5px", "padding": "10px 15px",
            "background": chart.colour, "color": "white", "text-decoration": "none",
            "border-radius": "5px",
        }),
        ("a:hover", {"background": chart.hover}),
    ]
    body = "\n".join(
        [
            f"<h2>{chart.heading}</h2>",
            f'<p>Atual: <span id="valor">---</span>{chart.unit}</p>',
            '<canvas id="grafico" width="600" height="300"></canvas>',
            f"<div>{_links(chart.links)}</div>",
        ]
    )
    script = _CHART_SCRIPT.substitute(
        watch=_page_watch(page, _BUTTON_PAGES),
        value=chart.value,
        unit=chart.unit,
        colour=chart.colour,
    )
    return _document(chart.title, styles, body, script)


_HTML: dict[Page, str] = {
    Page.HOME: _home(),
    Page.OFFSET: _offset(),
    **{page: _render_chart(page, chart) for page, chart in _CHARTS.items()},
}


def html_for(page: Page | int) -> str:
    """Return the HTML document for ``page``.

    Page numbers that name no page fall back to the home page.
    """
    try:
        return _HTML[Page(page)]
    except ValueError:
        return _HTML[Page.HOME]