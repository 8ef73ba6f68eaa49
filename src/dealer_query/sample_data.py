"""
Sample Inventory
================

A small demonstration lot used to seed the in-process executor.
"""

SAMPLE_VEHICLES = [
    {"stock_number": "H1001", "vin": "1HGCV1F30LA000001", "year": 2021, "make": "Honda", "model": "Civic", "trim": "EX", "body_style": "SEDAN", "price_cents": 2450000, "mileage": 12000, "drivetrain": "FWD", "fuel_type": "Gasoline", "exterior_color": "Black", "interior_color": "Black", "transmission": "CVT", "vehicle_type": "CAR", "days_on_lot": 14, "location": "Main Lot"},
    {"stock_number": "H1002", "vin": "1HGCV1F30LA000002", "year": 2022, "make": "Honda", "model": "Accord", "trim": "Sport", "body_style": "SEDAN", "price_cents": 2890000, "mileage": 8500, "drivetrain": "FWD", "fuel_type": "Gasoline", "exterior_color": "White", "interior_color": "Black", "transmission": "CVT", "vehicle_type": "CAR", "days_on_lot": 21, "location": "Main Lot"},
    {"stock_number": "H1003", "vin": "5J6RW2H50LA000003", "year": 2020, "make": "Honda", "model": "CR-V", "trim": "EX-L", "body_style": "SUV", "price_cents": 2675000, "mileage": 31000, "drivetrain": "AWD", "fuel_type": "Gasoline", "exterior_color": "Silver", "interior_color": "Gray", "transmission": "CVT", "vehicle_type": "CAR", "days_on_lot": 45, "location": "Main Lot"},
    {"stock_number": "H1004", "vin": "5FNYF6H50LA000004", "year": 2023, "make": "Honda", "model": "Pilot", "trim": "Touring", "body_style": "SUV", "price_cents": 4320000, "mileage": 4200, "drivetrain": "AWD", "fuel_type": "Gasoline", "exterior_color": "Blue", "interior_color": "Beige", "transmission": "Automatic", "vehicle_type": "CAR", "days_on_lot": 7, "location": "North Lot"},
    {"stock_number": "J2001", "vin": "1C4HJXEG0LW000005", "year": 2021, "make": "Jeep", "model": "Wrangler", "trim": "Sahara", "body_style": "SUV", "price_cents": 3875000, "mileage": 22000, "drivetrain": "4WD", "fuel_type": "Gasoline", "exterior_color": "Red", "interior_color": "Black", "transmission": "Automatic", "vehicle_type": "CAR", "days_on_lot": 33, "location": "Main Lot"},
    {"stock_number": "J2002", "vin": "1C6HJTFG0LL000006", "year": 2022, "make": "Jeep", "model": "Gladiator", "trim": "Rubicon", "body_style": "TRUCK", "price_cents": 4650000, "mileage": 15000, "drivetrain": "4WD", "fuel_type": "Gasoline", "exterior_color": "Green", "interior_color": "Black", "transmission": "Automatic", "vehicle_type": "CAR", "days_on_lot": 60, "location": "North Lot"},
    {"stock_number": "J2003", "vin": "1C4RJFAG0LC000007", "year": 2020, "make": "Jeep", "model": "Grand Cherokee", "trim": "Limited", "body_style": "SUV", "price_cents": 2990000, "mileage": 41000, "drivetrain": "4WD", "fuel_type": "Gasoline", "exterior_color": "Black", "interior_color": "Brown", "transmission": "Automatic", "vehicle_type": "CAR", "days_on_lot": 90, "location": "Main Lot"},
    {"stock_number": "F3001", "vin": "1FMSK8DH0LG000008", "year": 2021, "make": "Ford", "model": "Explorer", "trim": "XLT", "body_style": "SUV", "price_cents": 3150000, "mileage": 27000, "drivetrain": "AWD", "fuel_type": "Gasoline", "exterior_color": "Black", "interior_color": "Gray", "transmission": "Automatic", "vehicle_type": "CAR", "days_on_lot": 18, "location": "Main Lot"},
    {"stock_number": "F3002", "vin": "1FTEW1EP0LF000009", "year": 2022, "make": "Ford", "model": "F-150", "trim": "Lariat", "body_style": "TRUCK", "price_cents": 4899000, "mileage": 11000, "drivetrain": "4WD", "fuel_type": "Gasoline", "exterior_color": "White", "interior_color": "Black", "transmission": "Automatic", "vehicle_type": "CAR", "days_on_lot": 25, "location": "North Lot"},
    {"stock_number": "T4001", "vin": "4T1B11HK0LU000010", "year": 2020, "make": "Toyota", "model": "Camry", "trim": "SE", "body_style": "SEDAN", "price_cents": 2199000, "mileage": 38000, "drivetrain": "FWD", "fuel_type": "Gasoline", "exterior_color": "Gray", "interior_color": "Black", "transmission": "Automatic", "vehicle_type": "CAR", "days_on_lot": 52, "location": "Main Lot"},
    {"stock_number": "T4002", "vin": "5TFCZ5AN0LX000011", "year": 2021, "make": "Toyota", "model": "Tacoma", "trim": "TRD Sport", "body_style": "TRUCK", "price_cents": 3499000, "mileage": 19000, "drivetrain": "4WD", "fuel_type": "Gasoline", "exterior_color": "Silver", "interior_color": "Black", "transmission": "Automatic", "vehicle_type": "CAR", "days_on_lot": 12, "location": "North Lot"},
    {"stock_number": "C5001", "vin": "1G1ZD5ST0LF000012", "year": 2019, "make": "Chevrolet", "model": "Malibu", "trim": "LT", "body_style": "SEDAN", "price_cents": 1695000, "mileage": 52000, "drivetrain": "FWD", "fuel_type": "Gasoline", "exterior_color": "Red", "interior_color": "Black", "transmission": "Automatic", "vehicle_type": "CAR", "days_on_lot": 75, "location": "Main Lot"},
    {"stock_number": "M6001", "vin": "1HD1KB4170Y000013", "year": 2022, "make": "Harley-Davidson", "model": "Street Glide", "trim": "Special", "body_style": "MOTORCYCLE", "price_cents": 2899000, "mileage": 3000, "drivetrain": "RWD", "fuel_type": "Gasoline", "exterior_color": "Black", "interior_color": "Black", "transmission": "Manual", "vehicle_type": "MOTORCYCLE", "days_on_lot": 40, "location": "Showroom"},
]
