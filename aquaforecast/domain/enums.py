from enum import Enum, auto

class ForecastAlertType(Enum):
    """Urgência do alerta de estoque de ração."""
    STOCKOUT_IMMINENT = auto()  # Acaba em até 3 dias
    REORDER_NOW = auto()        # Dentro do lead time do fornecedor
    LOW_STOCK = auto()          # Dentro do lead time + estoque de segurança

class SelectionStatus(Enum):
    """Resultado da seleção de ração para um dia simulado."""
    SELECTED = auto()       # Ração encontrada e taxa resolvida
    NO_ASSIGNMENT = auto()  # Nenhuma faixa de peso configurada cobre o peso atual
    LOOKUP_FAILED = auto()  # Falha de acesso a dados (ração ausente, repo com erro)

class FeedPath(Enum):
    """Origem da taxa de alimentação."""
    MATRIX_2D = auto()      # Interpolação bilinear temperatura x peso
    CURVE_1D = auto()       # Curva de alimentação por peso
    DEFAULT_TABLE = auto()  # Tabela padrão por faixa de peso (sem ração)
