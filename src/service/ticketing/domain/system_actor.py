from uuid_utils import UUID


# Actor id used by the payment-timeout sweep; never a real user
SYSTEM_ACTOR_ID = UUID('00000000-0000-0000-0000-000000000000')
