APP_VERSION = "0.1.0"
SERVICE_NAME = "shinshop-api"
