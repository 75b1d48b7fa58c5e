class RewardLedgerError(Exception):
    pass


class NotAdminError(RewardLedgerError):
    pass


class AmountMustBePositiveError(RewardLedgerError):
    pass


class InsufficientFundsError(RewardLedgerError):
    pass


class InsufficientAllowanceError(RewardLedgerError):
    pass


class TransferFailedError(RewardLedgerError):
    pass


class ArithmeticOverflowError(RewardLedgerError):
    pass


class ScheduleActiveError(RewardLedgerError):
    pass


class DurationNotConfiguredError(RewardLedgerError):
    pass


class ProtectedAssetError(RewardLedgerError):
    pass


class ReentrancyError(RewardLedgerError):
    pass


class UnknownAssetError(RewardLedgerError):
    pass
