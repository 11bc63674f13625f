# dbkompare/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Gestiona la configuración de las funciones cargando variables de entorno.
    Utiliza Pydantic para la validación de tipos.
    """
    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_case=True, extra="ignore"
    )

    # --- AWS ---
    AWS_REGION: str = "eu-central-1"
    DYNAMODB_ENDPOINT: str = ""  # Vacío en producción, LocalStack en desarrollo

    # --- Tablas DynamoDB ---
    USERS_TABLE: str = "Users"
    QUIZZES_TABLE: str = "Quizzes"
    QUIZ_QUESTIONS_TABLE: str = "QuizQuestions"
    QUIZ_SUBMISSIONS_TABLE: str = "QuizSubmissions"
    CERTIFICATES_TABLE: str = "Certificates"
    GROUPS_TABLE: str = "Groups"
    USER_ACHIEVEMENTS_TABLE: str = "UserAchievements"
    CERTIFICATION_PLANS_TABLE: str = "CertificationPlans"
    DB_TOOLS_TABLE: str = "DbTools"
    DB_TOOL_CATEGORIES_TABLE: str = "DbToolCategories"

    # --- Certificados (S3) ---
    BUCKET_NAME: str = "dbkompare-assets"
    CERTIFICATE_TEMPLATE_KEY: str = "COMMON/Certificate.pdf"
    CERTIFICATE_VERIFY_BASE_URL: str = "https://dbkompare.com/verify"

    # --- Créditos ---
    CREDITS_ELIGIBILITY_THRESHOLD: int = 25
    DEFAULT_FREE_QUIZ_CREDITS: int = 2

    # --- Stripe ---
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    PAYMENT_CURRENCY: str = "eur"

    # --- OpenAI ---
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    # --- Email/SMTP Settings ---
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = "no-reply@dbkompare.com"
    SMTP_FROM_NAME: str = "DBKompare"
    ADMIN_EMAIL: str = "admin@dbkompare.com"
    SUPPORT_EMAIL: str = "support@dbkompare.com"

    # --- Autorización (Cognito) ---
    COGNITO_USER_POOL_ID: str = ""
    ADMIN_GROUP: str = "ADMINS"
    VENDOR_GROUP: str = "VENDORS"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "/tmp/logs"


# Instancia única de la configuración que será usada en toda la aplicación.
settings = Settings()
