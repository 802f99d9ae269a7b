from functools import wraps

from moderato.datasource import TransactionSource


def transactional(source: TransactionSource):
    """Convenience decorator to run a function in a transaction scope of
    the given source.

    The scope is committed when the function returns and the whole
    transaction is rolled back when it raises. Decorated functions may call
    each other freely: nested calls share the caller's transaction.

    Example:

    ```python
    from moderato import TransactionSource, transactional

    source = TransactionSource(db_path="app.db")

    @transactional(source)
    def create_order(customer_id: int) -> None:
        with source.connection() as conn:
            conn.execute(...)
    ```

    Args:
        source (TransactionSource): The source transactions are drawn from
    """

    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            with source.transaction():
                return f(*args, **kwargs)

        return wrapper

    return decorator
