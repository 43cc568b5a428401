"""Character sets available to the terminal spinner."""

from __future__ import annotations

_CLOCK_ONE_OCLOCK = 0x1F550
_CLOCK_ONE_THIRTY = 0x1F55C

CHAR_SETS: dict[int, tuple[str, ...]] = {
    0: ("←", "↖", "↑", "↗", "→", "↘", "↓", "↙"),
    1: ("▁", "▃", "▄", "▅", "▆", "▇", "█", "▇", "▆", "▅", "▄", "▃", "▁"),
    2: ("▖", "▘", "▝", "▗"),
    3: ("┤", "┘", "┴", "└", "├", "┌", "┬", "┐"),
    4: ("◢", "◣", "◤", "◥"),
    5: ("◰", "◳", "◲", "◱"),
    6: ("◴", "◷", "◶", "◵"),
    7: ("◐", "◓", "◑", "◒"),
    8: (".", "o", "O", "@", "*"),
    9: ("|", "/", "-", "\\"),
    10: ("◡◡", "⊙⊙", "◠◠"),
    11: ("⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷"),
    12: (">))'>", " >))'>", "  >))'>", "   >))'>", "    >))'>", "   <'((<", "  <'((<", " <'((<"),
    13: ("⠁", "⠂", "⠄", "⡀", "⢀", "⠠", "⠐", "⠈"),
    14: ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"),
    15: tuple("abcdefghijklmnopqrstuvwxyz"),
    16: ("▉", "▊", "▋", "▌", "▍", "▎", "▏", "▎", "▍", "▌", "▋", "▊", "▉"),
    17: ("■", "□", "▪", "▫"),
    18: ("←", "↑", "→", "↓"),
    19: ("╫", "╪"),
    20: ("⇐", "⇖", "⇑", "⇗", "⇒", "⇘", "⇓", "⇙"),
    21: (
        "⠁", "⠁", "⠉", "⠙", "⠚", "⠒", "⠂", "⠂", "⠒", "⠲", "⠴", "⠤", "⠄", "⠄", "⠤",
        "⠠", "⠠", "⠤", "⠦", "⠖", "⠒", "⠐", "⠐", "⠒", "⠓", "⠋", "⠉", "⠈", "⠈",
    ),
    22: (
        "⠈", "⠉", "⠋", "⠓", "⠒", "⠐", "⠐", "⠒", "⠖", "⠦", "⠤", "⠠", "⠠", "⠤", "⠦",
        "⠖", "⠒", "⠐", "⠐", "⠒", "⠓", "⠋", "⠉", "⠈",
    ),
    23: (
        "⠁", "⠉", "⠙", "⠚", "⠒", "⠂", "⠂", "⠒", "⠲", "⠴", "⠤", "⠄", "⠄", "⠤", "⠴",
        "⠲", "⠒", "⠂", "⠂", "⠒", "⠚", "⠙", "⠉", "⠁",
    ),
    24: ("⠋", "⠙", "⠚", "⠒", "⠂", "⠂", "⠒", "⠲", "⠴", "⠦", "⠖", "⠒", "⠐", "⠐", "⠒", "⠓", "⠋"),
    25: tuple(
        "ｦｧｨｩｪｫｬｭｮｯｱｲｳｴｵｶｷｸｹｺｻｼｽｾｿﾀﾁﾂﾃﾄﾅﾆﾇﾈﾉﾊﾋﾌﾍﾎﾏﾐﾑﾒﾓﾔﾕﾖﾗﾘﾙﾚﾛﾜﾝ"
    ),
    26: (".", "..", "..."),
    27: (
        "▁", "▂", "▃", "▄", "▅", "▆", "▇", "█", "▉", "▊", "▋", "▌", "▍", "▎", "▏",
        "▏", "▎", "▍", "▌", "▋", "▊", "▉", "█", "▇", "▆", "▅", "▄", "▃", "▂", "▁",
    ),
    28: (".", "o", "O", "°", "O", "o", "."),
    29: ("+", "x"),
    30: ("v", "<", "^", ">"),
    31: (
        ">>--->", " >>--->", "  >>--->", "   >>--->", "    >>--->",
        "    <---<<", "   <---<<", "  <---<<", " <---<<", "<---<<",
    ),
    32: (
        "|", "||", "|||", "||||", "|||||", "|||||||", "||||||||", "|||||||",
        "||||||", "|||||", "||||", "|||", "||", "|",
    ),
    33: (
        "[          ]", "[=         ]", "[==        ]", "[===       ]",
        "[====      ]", "[=====     ]", "[======    ]", "[=======   ]",
        "[========  ]", "[========= ]", "[==========]",
    ),
    34: (
        "(*---------)", "(-*--------)", "(--*-------)", "(---*------)",
        "(----*-----)", "(-----*----)", "(------*---)", "(-------*--)",
        "(--------*-)", "(---------*)",
    ),
    35: ("█▒▒▒▒▒▒▒▒▒", "███▒▒▒▒▒▒▒", "█████▒▒▒▒▒", "███████▒▒▒", "██████████"),
    36: (
        "[                    ]", "[=>                  ]", "[===>                ]",
        "[=====>              ]", "[======>             ]", "[========>           ]",
        "[==========>         ]", "[============>       ]", "[==============>     ]",
        "[================>   ]", "[==================> ]", "[===================>]",
    ),
    37: tuple(chr(_CLOCK_ONE_OCLOCK + i) for i in range(12)),
    38: tuple(
        clock
        for i in range(12)
        for clock in (chr(_CLOCK_ONE_OCLOCK + i), chr(_CLOCK_ONE_THIRTY + i))
    ),
    39: ("🌍", "🌎", "🌏"),
    40: ("◜", "◝", "◞", "◟"),
    41: ("⬒", "⬔", "⬓", "⬕"),
    42: ("⬖", "⬘", "⬗", "⬙"),
    43: (
        "[>>>          >]", "[]>>>>        []", "[]  >>>>      []", "[]    >>>>    []",
        "[]      >>>>  []", "[]        >>>>[]", "[>>          >>]",
    ),
    44: ("♠", "♣", "♥", "♦"),
    45: ("➞", "➟", "➠", "➡", "➠", "➟"),
    46: ("  |  ", " \\   ", "_    ", " \\   ", "  |  ", "   / ", "    _", "   / "),
    47: ("  . . . .", ".   . . .", ". .   . .", ". . .   .", ". . . .  ", ". . . . ."),
    48: (" |     ", "  /    ", "   _   ", "    \\  ", "     | ", "    \\  ", "   _   ", "  /    "),
    49: ("⎺", "⎻", "⎼", "⎽", "⎼", "⎻"),
    50: ("▹▹▹▹▹", "▸▹▹▹▹", "▹▸▹▹▹", "▹▹▸▹▹", "▹▹▹▸▹", "▹▹▹▹▸"),
    51: ("[    ]", "[   =]", "[  ==]", "[ ===]", "[====]", "[=== ]", "[==  ]", "[=   ]"),
    52: (
        "( ●    )", "(  ●   )", "(   ●  )", "(    ● )", "(     ●)",
        "(    ● )", "(   ●  )", "(  ●   )", "( ●    )",
    ),
    53: ("✶", "✸", "✹", "✺", "✹", "✷"),
    54: (
        "▐|\\____________▌", "▐_|\\___________▌", "▐__|\\__________▌",
        "▐___|\\_________▌", "▐____|\\________▌", "▐_____|\\_______▌",
        "▐______|\\______▌", "▐_______|\\_____▌", "▐________|\\____▌",
        "▐_________|\\___▌", "▐__________|\\__▌", "▐___________|\\_▌",
        "▐____________|\\▌", "▐____________/|▌", "▐___________/|_▌",
        "▐__________/|__▌", "▐_________/|___▌", "▐________/|____▌",
        "▐_______/|_____▌", "▐______/|______▌", "▐_____/|_______▌",
        "▐____/|________▌", "▐___/|_________▌", "▐__/|__________▌",
        "▐_/|___________▌", "▐/|____________▌",
    ),
    55: (
        "▐⠂       ▌", "▐⠈       ▌", "▐ ⠂      ▌", "▐ ⠠      ▌", "▐  ⡀     ▌",
        "▐  ⠠     ▌", "▐   ⠂    ▌", "▐   ⠈    ▌", "▐    ⠂   ▌", "▐    ⠠   ▌",
        "▐     ⡀  ▌", "▐     ⠠  ▌", "▐      ⠂ ▌", "▐      ⠈ ▌", "▐       ⠂▌",
        "▐       ⠠▌", "▐       ⡀▌", "▐      ⠠ ▌", "▐      ⠂ ▌", "▐     ⠈  ▌",
        "▐     ⠂  ▌", "▐    ⠠   ▌", "▐    ⡀   ▌", "▐   ⠠    ▌", "▐   ⠂    ▌",
        "▐  ⠈     ▌", "▐  ⠂     ▌", "▐ ⠠      ▌", "▐ ⡀      ▌", "▐⠠       ▌",
    ),
    56: ("¿", "?"),
    57: ("⢹", "⢺", "⢼", "⣸", "⣇", "⡧", "⡗", "⡏"),
    58: ("⢄", "⢂", "⢁", "⡁", "⡈", "⡐", "⡠"),
    59: (".  ", ".. ", "...", " ..", "  .", "   "),
    60: (".", "o", "O", "°", "O", "o", "."),
    61: ("▓", "▒", "░"),
    62: ("▌", "▀", "▐", "▄"),
    63: ("⊶", "⊷"),
    64: ("▪", "▫"),
    65: ("□", "■"),
    66: ("▮", "▯"),
    67: ("-", "=", "≡"),
    68: ("d", "q", "p", "b"),
    69: ("∙∙∙", "●∙∙", "∙●∙", "∙∙●", "∙∙∙"),
    70: ("🌑 ", "🌒 ", "🌓 ", "🌔 ", "🌕 ", "🌖 ", "🌗 ", "🌘 "),
    71: ("☗", "☖"),
    72: ("⧇", "⧆"),
    73: ("◉", "◎"),
    74: ("㊂", "㊀", "㊁"),
    75: ("⦾", "⦿"),
    76: ("ဝ", "၀"),
    77: ("▌", "▀", "▐▄"),
}


def char_set(index: int) -> list[str]:
    """Return a fresh list holding the character set numbered ``index``.

    Raises KeyError if no such set exists.
    """
    try:
        return list(CHAR_SETS[index])
    except KeyError:
        raise KeyError(f"no character set {index}") from None