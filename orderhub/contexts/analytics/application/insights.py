from __future__ import annotations

from typing import Dict, List


# Fixed thresholds; not read from config.
LOW_CONVERSION_RATE = 10
STRONG_REVENUE_GROWTH = 20
LOW_AVERAGE_ORDER_VALUE = 50
PENDING_ORDERS_ALERT = 10


def format_number(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def generate_insights(metrics: dict, comparison: dict, real_time: dict) -> Dict[str, List[str]]:
    insights: List[str] = []
    recommendations: List[str] = []
    alerts: List[str] = []

    conversion_rate = metrics.get("conversionRate", 0) or 0
    if conversion_rate < LOW_CONVERSION_RATE:
        insights.append(f"Conversion rate is {format_number(conversion_rate)}%, which is below industry average")
        recommendations.append("Consider implementing email marketing campaigns to convert users")
    else:
        insights.append(f"Good conversion rate of {format_number(conversion_rate)}%")

    revenue_growth = (comparison.get("growth") or {}).get("revenueGrowth", 0) or 0
    if revenue_growth < 0:
        alerts.append(f"Revenue declined by {format_number(abs(revenue_growth))}% compared to previous period")
        recommendations.append("Review product pricing and customer satisfaction metrics")
    elif revenue_growth > STRONG_REVENUE_GROWTH:
        insights.append(f"Excellent revenue growth of {format_number(revenue_growth)}%")

    if (metrics.get("averageOrderValue", 0) or 0) < LOW_AVERAGE_ORDER_VALUE:
        recommendations.append("Consider implementing upselling strategies to increase average order value")

    pending_orders = int(real_time.get("pendingOrders", 0) or 0)
    if pending_orders > PENDING_ORDERS_ALERT:
        alerts.append(f"{pending_orders} orders are pending processing")
        recommendations.append("Review order processing workflow for bottlenecks")

    return {"insights": insights, "recommendations": recommendations, "alerts": alerts}
