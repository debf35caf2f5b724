from pydantic.main import BaseModel


class RabbitSettings(BaseModel):
    USER: str
    PASS: str
    HOST: str
    PORT: int = 5672

    @property
    def dsn(self) -> str:
        return f"amqp://{self.USER}:{self.PASS}@{self.HOST}:{self.PORT}/"


class PostgresSettings(BaseModel):
    HOST: str
    PORT: int
    USER: str
    PASSWORD: str
    DB: str

    @property
    def dsn(self) -> str:
        return f"postgresql://{self.USER}:{self.PASSWORD}@{self.HOST}:{self.PORT}/{self.DB}"

    @property
    def async_dsn(self) -> str:
        return f"postgresql+asyncpg://{self.USER}:{self.PASSWORD}@{self.HOST}:{self.PORT}/{self.DB}"


class ReferenceDataSettings(BaseModel):
    URL: str = "http://localhost:18085"


class AccountServiceSettings(BaseModel):
    URL: str = "http://localhost:18088"


class LookupSettings(BaseModel):
    TIMEOUT_SECONDS: float = 5.0


class PublisherSettings(BaseModel):
    ENABLED: bool = True
    EXCHANGE: str = "traderx.events"
