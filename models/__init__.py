from .db import db, transaction
from .user import User, Role, user_roles
from .access_token import AccessToken
from .vehicle import Vehicle
from .parking_space import ParkingSpace
from .reservation import Reservation
from .payment import Payment
