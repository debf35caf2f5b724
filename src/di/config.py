from dishka import Provider, Scope, from_context, provide

from src.configs import (
    AccountServiceSettings,
    LookupSettings,
    PublisherSettings,
    RabbitSettings,
    ReferenceDataSettings,
)
from src.processor.config.settings import ProcessorSettings


class ProcessorConfigProvider(Provider):
    scope = Scope.APP
    config = from_context(ProcessorSettings)

    @provide(scope=Scope.APP)
    def get_rabbit_config(self, config: ProcessorSettings) -> RabbitSettings:
        return config.rabbit

    @provide(scope=Scope.APP)
    def get_reference_data_config(self, config: ProcessorSettings) -> ReferenceDataSettings:
        return config.reference_data

    @provide(scope=Scope.APP)
    def get_account_service_config(self, config: ProcessorSettings) -> AccountServiceSettings:
        return config.account_service

    @provide(scope=Scope.APP)
    def get_lookup_config(self, config: ProcessorSettings) -> LookupSettings:
        return config.lookup

    @provide(scope=Scope.APP)
    def get_publisher_config(self, config: ProcessorSettings) -> PublisherSettings:
        return config.publisher
