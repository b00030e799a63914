import contextvars

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
customer_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "customer_id", default=None
)
