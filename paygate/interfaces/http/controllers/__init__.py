# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .admin_controller import AdminController
from .auth_controller import AuthController
from .misc_controller import MiscController
from .payment_controller import PaymentController

__all__ = ["AdminController", "AuthController", "MiscController", "PaymentController"]
