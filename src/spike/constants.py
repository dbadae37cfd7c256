from __future__ import annotations

SPIKE_VERSION = "0.0.1"
TAB_STOP = 8
QUERY_LEN = 256
QUIT_TIMES = 3
STATUS_MSG_TIMEOUT = 5

# Syntax highlight types.
HL_NORMAL = 0
HL_NUMBER = 1
HL_MATCH = 2

# Key actions.
CTRL_F = 6
CTRL_H = 8
TAB = 9
CTRL_L = 12
ENTER = 13
CTRL_Q = 17
CTRL_S = 19
ESC = 27
BACKSPACE = 127

ARROW_LEFT = 1000
ARROW_RIGHT = 1001
ARROW_UP = 1002
ARROW_DOWN = 1003
DEL_KEY = 1004
HOME_KEY = 1005
END_KEY = 1006
PAGE_UP = 1007
PAGE_DOWN = 1008

ANSI_HIDE_CURSOR = "\x1b[?25l"
ANSI_SHOW_CURSOR = "\x1b[?25h"
ANSI_CURSOR_HOME = "\x1b[H"
ANSI_CLEAR_SCREEN = "\x1b[2J"
ANSI_CLEAR_LINE = "\x1b[K"
ANSI_INVERT_ON = "\x1b[7m"
ANSI_RESET = "\x1b[m"
ANSI_DEFAULT_FG = "\x1b[39m"