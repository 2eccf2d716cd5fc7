"""Application metadata constants."""

APP_NAME = "DataFlow Notify"
APP_SLUG = "dataflow"
APP_VERSION = "1.0.0"
