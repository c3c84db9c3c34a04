"""Navigation package - role route tables and the route guard."""
from market_admin.navigation.roles import (
    PAGES, Page, Role, RouteTable, normalize_path, route_table_for
)
from market_admin.navigation.guard import (
    NAV_INTENT_KEY, GuardDecision, GuardState, NavigationContext, Verdict,
    enter_via_shell, evaluate
)
