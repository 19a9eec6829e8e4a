from .settle_callback import SettleCallbackUseCase
from .start_payment import StartedPayment, StartPaymentUseCase

__all__ = ["SettleCallbackUseCase", "StartPaymentUseCase", "StartedPayment"]
