APP_NAME = "reviewfunnel-api"
__version__ = "0.1.0"
