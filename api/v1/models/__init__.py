from api.v1.models.user import User, DEFAULT_CURRENCY
from api.v1.models.transaction import Transaction, TransactionType
from api.v1.models.federated_account import FederatedAccount
from api.v1.models.blacklisted_token import BlacklistedToken
