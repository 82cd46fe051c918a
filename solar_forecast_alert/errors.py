# solar_forecast_alert/errors.py

class SolarForecastError(Exception):
    """Base class for failures that abort an evaluation cycle."""


class TransientError(SolarForecastError):
    """Forecast fetch or parse failure; the next scheduled cycle retries."""


class DeliveryError(SolarForecastError):
    """A notification could not be delivered."""


class PersistenceError(SolarForecastError):
    """Alert state could not be read or written."""
