from fastapi import APIRouter

router = APIRouter()

EXAMPLE_QUERIES = [
    {
        "title": "Simple Lookup",
        "query": "SELECT * FROM users WHERE email = 'user@example.com';",
        "description": "Basic WHERE clause lookup",
    },
    {
        "title": "Join Query",
        "query": (
            "SELECT u.name, o.total_amount\n"
            "FROM users u\n"
            "JOIN orders o ON u.id = o.user_id\n"
            "WHERE o.status = 'completed';"
        ),
        "description": "Join with WHERE filter",
    },
    {
        "title": "Aggregation",
        "query": (
            "SELECT\n"
            "  category,\n"
            "  COUNT(*) as total,\n"
            "  AVG(price) as avg_price\n"
            "FROM products\n"
            "GROUP BY category\n"
            "ORDER BY total DESC;"
        ),
        "description": "GROUP BY with aggregation",
    },
    {
        "title": "Complex Join",
        "query": (
            "SELECT\n"
            "  p.name,\n"
            "  SUM(oi.quantity) as total_sold,\n"
            "  SUM(oi.quantity * oi.price) as revenue\n"
            "FROM products p\n"
            "LEFT JOIN order_items oi ON p.id = oi.product_id\n"
            "GROUP BY p.id, p.name\n"
            "ORDER BY revenue DESC\n"
            "LIMIT 10;"
        ),
        "description": "Multiple joins with aggregation",
    },
]


@router.get("/examples")
def examples():
    return {"ok": True, "items": EXAMPLE_QUERIES}
