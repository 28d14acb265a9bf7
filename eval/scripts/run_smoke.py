import time, json, requests

SMOKES = [
    "SELECT id FROM orders",
    "SELECT * FROM users WHERE email = 'user@example.com'",
    "SELECT * FROM users; DROP TABLE users;",
]

for q in SMOKES:
    t0 = time.time()
    r = requests.post(
        "http://localhost:8000/v1/query-analyses", json={"query": q}, timeout=60
    )
    dt = time.time() - t0
    print(json.dumps({"q": q, "latency_s": round(dt, 3), "status": r.status_code}))
    print(json.dumps(r.json(), indent=2))
