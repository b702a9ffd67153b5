PROVIDER_REGISTER = "/api/auth/provider/register"
SERVICE_CATEGORIES = "/api/auth/service-categories"
PROVIDER_REGISTER_CATEGORIES = "/api/auth/provider/register-categories"
PROVIDER_REGISTER_SERVICE = "/api/auth/provider/register-service"
PROVIDER_SERVICE_UPLOAD_PHOTOS = "/api/auth/provider/service/upload-photos"
PROVIDER_SERVICE_SCHEDULE = "/api/auth/providers/schedule"
