"""Static metadata describing LiveQuiz."""

APP_NAME = "LiveQuiz"
APP_VERSION = "0.1"
APP_ABOUT_TEXT = (
    "LiveQuiz runs live quiz sessions: a host starts a stored quiz, participants join "
    "with a nickname and answer against the clock, and every connected client "
    "receives score updates over a WebSocket."
)
