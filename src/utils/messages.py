from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    Posted when the session ends, either from the logout button or because the
    backend rejected the token (expired=True).
    """

    bubble = True

    def __init__(self, expired: bool = False) -> None:
        super().__init__()
        self.expired = expired


class UserLoginMessage(Message):
    """
    Fired once a token has been obtained, so screens can refresh
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called,
    logged by the app
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
