from dataclasses import dataclass
from typing import Optional

from dynq import ListQuery

# Task: list users for a search screen where every filter and the sort order
# come from request parameters that may be missing.


@dataclass
class Address:
    City: str
    Country: str


@dataclass
class User:
    Id: int
    Name: str
    Age: Optional[int]
    Address: Optional[Address]
    PasswordHash: str = ""


@dataclass
class UserModel:
    Id: int
    Name: str
    Age: Optional[int] = None


users = ListQuery(
    [
        User(1, "Ann", 34, Address("Paris", "FR")),
        User(2, "Bob", None, Address("Berlin", "DE")),
        User(3, "Cid", 27, None),
        User(4, "Dee", 41, Address("Paris", "FR")),
    ],
    User,
)

# Request parameters; None or "" means "not given"
min_age = 30
name_prefix = ""
order = "Address.City asc, Age desc"

result = (
    users
    # 1. Two-parameter predicates get the request value as second argument
    .where_if_not_null(min_age, users.capture(lambda u, v: u.Age >= v, None))
    .where_if_not_null_or_empty(name_prefix, lambda u, v: u.Name.startswith(v))
    # 2. Ordering text straight from the request
    .order_by(order)
    # 3. Copy the same-named fields into the response model
    .map_to(UserModel)
)

for model in result:
    print(model)
