from visa_checkout.models.product import VisaProduct
from visa_checkout.models.order import VisaOrder
from visa_checkout.models.payment import Payment
from visa_checkout.models.contract_token import (
    CheckoutPrefillToken,
    ContractViewToken,
    ResubmissionToken,
)
from visa_checkout.models.wise_transfer import WiseTransfer
from visa_checkout.models.zelle_payment import ZellePayment
from visa_checkout.models.order_event import OrderEvent
from visa_checkout.models.email import EmailLog

# add ALL models here
