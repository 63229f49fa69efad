"""8x8 bitmap font covering printable ASCII, one byte per column."""

from __future__ import annotations

FONT_WIDTH = 8
FONT_HEIGHT = 8
FIRST_CHAR = " "
LAST_CHAR = "~"

# Each glyph is eight column bytes; bit 0 is the top row.
_GLYPH_HEX = (
    "0000000000000000",  # space
    "0000005F5F000000",  # !
    "0007070007070000",  # "
    "147F7F147F7F1400",  # #
    "242E2A6B6B3A1200",  # $
    "466630180C666200",  # %
    "307A4F5D377A4800",  # &
    "0004070300000000",  # '
    "00001C3E63410000",  # (
    "000041633E1C0000",  # )
    "082A3E1C1C3E2A08",  # *
    "0008083E3E080800",  # +
    "000080E060000000",  # ,
    "0008080808080800",  # -
    "0000006060000000",  # .
    "6030180C06030100",  # /
    "3E7F594D477F3E00",  # 0
    "0040427F7F404000",  # 1
    "727B4949494F4600",  # 2
    "41414949497F3600",  # 3
    "1E1E10107F7F1000",  # 4
    "27674545457D3900",  # 5
    "3E7F494949793000",  # 6
    "01016171190F0700",  # 7
    "367F4949497F3600",  # 8
    "064F4949497F3E00",  # 9
    "0000006666000000",  # :
    "000080E666000000",  # ;
    "00081C3663410000",  # <
    "0014141414141400",  # =
    "00004163361C0800",  # >
    "000203595D070200",  # ?
    "3E7F415D5D5F5E00",  # @
    "7C7E1311137E7C00",  # A
    "7F7F4949497F3600",  # B
    "3E7F414141632200",  # C
    "7F7F4141633E1C00",  # D
    "7F7F494949414100",  # E
    "7F7F090909010100",  # F
    "3E7F414151733200",  # G
    "7F7F0808087F7F00",  # H
    "0041417F7F414100",  # I
    "20604040407F3F00",  # J
    "7F7F081C36634100",  # K
    "7F7F404040404000",  # L
    "7F7F0E1C0E7F7F00",  # M
    "7F7F060C187F7F00",  # N
    "3E7F4141417F3E00",  # O
    "7F7F0909090F0600",  # P
    "3E7F417161FFBE00",  # Q
    "7F7F0919396F4600",  # R
    "266F4949497B3200",  # S
    "0101017F7F010101",  # T
    "7F7F4040407F7F00",  # U
    "1F3F6060603F1F00",  # V
    "3F7F6030607F3F00",  # W
    "63771C081C776300",  # X
    "474F6838180F0700",  # Y
    "416171594D474300",  # Z
    "00007F7F41410000",  # [
    "0103060C18306000",  # backslash
    "000041417F7F0000",  # ]
    "080C0603060C0800",  # ^
    "8080808080808080",  # _
    "0000000307040000",  # `
    "20745454547C7800",  # a
    "7F7F484848783000",  # b
    "387C4444446C2800",  # c
    "30784848487F7F00",  # d
    "387C5454545C1800",  # e
    "00487E7F49030200",  # f
    "98BCA4A4A4FC7C00",  # g
    "7F7F0404047C7800",  # h
    "0000447D7D400000",  # i
    "40C0808080FD7D00",  # j
    "7F7F10183C644000",  # k
    "0000417F7F400000",  # l
    "7C7C18781C7C7800",  # m
    "7C7C0404047C7800",  # n
    "387C4444447C3800",  # o
    "FCFC2424243C1800",  # p
    "183C242424FCFC00",  # q
    "7C7C0404040C0800",  # r
    "485C545454742400",  # s
    "0004043F7F444400",  # t
    "3C7C4040407C7C00",  # u
    "1C3C6060603C1C00",  # v
    "3C7C6030607C3C00",  # w
    "446C3810386C4400",  # x
    "9CBCA0A0A0FC7C00",  # y
    "446474545C4C4400",  # z
    "0008083E77414100",  # {
    "0000007777000000",  # |
    "004141773E080800",  # }
    "0203010302030100",  # ~
)

_GLYPHS: tuple[bytes, ...] = tuple(bytes.fromhex(h) for h in _GLYPH_HEX)


def glyph(char: str) -> bytes:
    """Return the eight column bytes for ``char``.

    Characters outside the printable ASCII range are drawn as a space.
    """
    if not isinstance(char, str) or len(char) != 1:
        raise ValueError(f"expected a single character, got {char!r}")
    if FIRST_CHAR <= char <= LAST_CHAR:
        return _GLYPHS[ord(char) - ord(FIRST_CHAR)]
    return _GLYPHS[0]