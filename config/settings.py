# configurações globais

# valores padrão da simulação (antes espalhados por cada chamada)
SIMULATION_DEFAULTS = {
    'feeding_rate_percent': 3.0,   # %BW quando curva/matriz não resolve
    'fcr': 1.0,                    # FCR para células ausentes da matriz
    'temperature_c': 15.0,         # sem previsão de temperatura
    'sgr_percent': 1.5,            # lote sem SGR cadastrado
    'mortality_rate': 0.0001       # 0,01% ao dia
}

#previsão de consumo / reposição

FORECAST_DEFAULTS = {
    'forecast_days': 30,
    'lead_time_days': 7,
    'safety_stock_days': 5,
    'reorder_window_days': 30,     # pedido padrão cobre um mês + estoque de segurança
    'stockout_imminent_days': 3,
    'max_workers': 4
}

# SGR base (%/dia) por espécie em temperatura ótima
SPECIES_BASE_SGR = {
    'seabass': 1.5,
    'seabream': 1.4,
    'trout': 2.0,
    'salmon': 1.8,
    'tilapia': 2.5,
    'default': 1.5
}
