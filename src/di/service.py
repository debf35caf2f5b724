from dishka import Provider, Scope, provide

from src.configs import LookupSettings
from src.core.clients.interface import AbstractAccountClient, AbstractEventPublisher, AbstractReferenceDataClient
from src.core.locks import KeyedLock
from src.core.services.booking_query import BookingQueryService
from src.core.services.order_processor import OrderProcessor
from src.processor.uow import UnitOfWork


class ServiceProvider(Provider):
    @provide(scope=Scope.APP)
    def get_position_locks(self) -> KeyedLock:
        return KeyedLock()

    @provide(scope=Scope.REQUEST)
    def get_order_processor(
        self,
        uow: UnitOfWork,
        reference_data: AbstractReferenceDataClient,
        accounts: AbstractAccountClient,
        publisher: AbstractEventPublisher,
        position_locks: KeyedLock,
        lookup: LookupSettings,
    ) -> OrderProcessor:
        return OrderProcessor(
            uow_factory=uow,
            reference_data=reference_data,
            accounts=accounts,
            publisher=publisher,
            keyed_lock=position_locks,
            lookup_timeout=lookup.TIMEOUT_SECONDS,
        )

    @provide(scope=Scope.REQUEST)
    def get_booking_query_service(self, uow: UnitOfWork) -> BookingQueryService:
        return BookingQueryService(uow)
