from enum import Enum


class ParkMode(str, Enum):
    """Как парк берёт комиссию."""
    NONE = "none"
    DAY = "day"          # фикс за рабочий день
    ORDER = "order"      # фикс за каждый заказ
    PERCENT = "percent"  # процент от дохода

    def __str__(self) -> str:
        return self.value


class TaxMode(str, Enum):
    """Налоговый режим водителя."""
    NONE = "none"
    SELF4 = "self4"  # самозанятый, 4%
    IP6 = "ip6"      # ИП на УСН, 6%

    def __str__(self) -> str:
        return self.value
