from textual.message import Message

from ticketpos.sales.processor import SaleCompleted


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class RegisterChangedMessage(Message):
    """
    Fired when the cash box was opened or closed
    """

    bubble = True


class SaleCompletedMessage(Message):
    """
    Fired by the app once a sale is committed; receipt printing listens to it.
    """

    bubble = True

    def __init__(self, event: SaleCompleted) -> None:
        super().__init__()
        self.event = event
