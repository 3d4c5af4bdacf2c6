"""Canonical column names, units, and sign conventions.

SIGN CONVENTIONS:
- price: Positive = cost per kWh imported (and revenue per kWh exported)
- pv_kwh: Positive = generation during the interval
- planned_kwh / random_kwh: Positive = consumption during the interval
- net_flow_kwh: Positive = import from grid, negative = export to grid
- trade_kwh: Positive = grid import to charge, negative = battery discharge to grid
- battery_action_kwh: Positive = net energy leaving the battery
- soc_kwh: Absolute state of charge in kWh

UNITS:
- Energy: kWh per interval (every series is energy, not power)
- Power: kW (battery and grid limits only)
- Prices: EUR/kWh
- Time: minutes since midnight, reported as "HH:MM"

ENERGY BALANCE PER INTERVAL:
planned + random + charge_from_pv + max(trade, 0)
    = pv + discharge_self_use + max(-trade, 0) + net_flow
"""

# Dispatch frame columns (internal, full precision)
COL_TIMESTAMP = "timestamp"
COL_PRICE = "price"
COL_PV_KWH = "pv_kwh"
COL_PLANNED_KWH = "planned_kwh"
COL_RANDOM_KWH = "random_kwh"
COL_PV_TO_LOAD_KWH = "pv_to_load_kwh"
COL_DISCHARGE_SELF_KWH = "discharge_self_kwh"
COL_CHARGE_FROM_PV_KWH = "charge_from_pv_kwh"
COL_PV_EXPORT_KWH = "pv_export_kwh"
COL_TRADE_KWH = "trade_kwh"
COL_NET_FLOW_KWH = "net_flow_kwh"
COL_BATTERY_ACTION_KWH = "battery_action_kwh"
COL_SOC_KWH = "soc_kwh"

DISPATCH_COLUMNS = [
    COL_PRICE,
    COL_PV_KWH,
    COL_PLANNED_KWH,
    COL_RANDOM_KWH,
    COL_PV_TO_LOAD_KWH,
    COL_DISCHARGE_SELF_KWH,
    COL_CHARGE_FROM_PV_KWH,
    COL_PV_EXPORT_KWH,
    COL_TRADE_KWH,
    COL_NET_FLOW_KWH,
    COL_BATTERY_ACTION_KWH,
    COL_SOC_KWH,
]

# CSV header labels (Dutch and English)
TIME_LABELS = ("tijdstip", "time")
VALUE_LABELS = ("prijs", "price", "productie", "production")

# Time grid
MINUTES_PER_DAY = 24 * 60
DEFAULT_INTERVAL_MINUTES = 60

# Optimizer discretization
SOC_STEP_KWH = 0.01
TRADE_CORRIDOR_FRAC = 0.8

# Synthetic household load: uniform 0.1-0.4 kW baseline
RANDOM_SEED = 42
RANDOM_LOAD_MIN_KW = 0.1
RANDOM_LOAD_SPAN_KW = 0.3

# Reporting precision
ENERGY_DECIMALS = 3
CURRENCY_DECIMALS = 2
SOC_PERCENT_DECIMALS = 1

# Tolerance for numerical comparisons
NUMERICAL_TOLERANCE = 1e-6
