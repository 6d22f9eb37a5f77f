class DonationLedgerError(Exception):
    status_code = 500


class ConfigError(DonationLedgerError):
    status_code = 500


class AuthError(DonationLedgerError):
    status_code = 401


class PayloadError(DonationLedgerError):
    status_code = 500


class RateProviderError(DonationLedgerError):
    """Upstream FX provider could not produce usable rates."""
    status_code = 502
