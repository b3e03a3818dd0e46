"""
Demo catalogue used when a forecast request carries no parts or transactions.
Covers the three trading roles (Manufacturer, Supplier, Distributor).
"""

import copy

DEMO_PARTS = [
    # Manufacturer: Raw Materials
    {'id': 'P001-R', 'name': 'Engine Block Casting', 'quantity': 50, 'reorderPoint': 20, 'maxStock': 100, 'type': 'raw'},
    {'id': 'P002-R', 'name': 'Piston Forgings', 'quantity': 150, 'reorderPoint': 50, 'maxStock': 300, 'type': 'raw'},
    # Manufacturer: WIP
    {'id': 'P001-W', 'name': 'Machined Engine Block', 'quantity': 15, 'reorderPoint': 5, 'maxStock': 30, 'type': 'wip'},
    # Manufacturer: Finished Goods
    {'id': 'P001-F', 'name': 'Engine Assembly', 'quantity': 30, 'reorderPoint': 10, 'maxStock': 50, 'type': 'finished'},
    {'id': 'P002-F', 'name': 'Piston Set', 'quantity': 70, 'reorderPoint': 30, 'maxStock': 150, 'type': 'finished'},
    {'id': 'P003-F', 'name': 'Brake Pad Kit', 'quantity': 80, 'reorderPoint': 40, 'maxStock': 200, 'type': 'finished'},

    # Supplier
    {'id': 'S-P004', 'name': '18-inch Alloy Wheel', 'quantity': 18, 'reorderPoint': 25, 'maxStock': 80, 'type': 'finished', 'source': 'Wheel Co.'},
    {'id': 'S-P005', 'name': 'Transmission Assembly', 'quantity': 30, 'reorderPoint': 10, 'maxStock': 50, 'type': 'finished', 'source': 'Gearbox Inc.'},
    {'id': 'S-P006', 'name': 'Headlight Assembly', 'quantity': 90, 'reorderPoint': 40, 'maxStock': 150, 'type': 'finished', 'source': 'Lights R Us'},

    # Distributor
    {'id': 'D-P007', 'name': 'Alternator', 'quantity': 22, 'reorderPoint': 25, 'maxStock': 70, 'type': 'finished', 'leadTime': 7, 'backorders': 5},
    {'id': 'D-P008', 'name': 'Radiator', 'quantity': 40, 'reorderPoint': 20, 'maxStock': 60, 'type': 'finished', 'leadTime': 5, 'backorders': 0},
]

DEMO_TRANSACTIONS = [
    # Manufacturer
    {'id': 'T001', 'partName': 'Engine Block Casting', 'type': 'supply', 'quantity': 20, 'date': '2024-07-15',
     'from': 'Global Metals Inc.', 'to': 'Manufacturer', 'role': 'Manufacturer'},
    {'id': 'T002', 'partName': 'Engine Assembly', 'type': 'demand', 'quantity': 10, 'date': '2024-07-14',
     'from': 'Manufacturer', 'to': 'Auto Parts Supply Co.', 'role': 'Manufacturer'},
    # Supplier
    {'id': 'T003', 'partName': 'Transmission Assembly', 'type': 'supply', 'quantity': 30, 'date': '2024-07-13',
     'from': 'Apex Automotive Manufacturing', 'to': 'Supplier', 'role': 'Supplier'},
    {'id': 'T004', 'partName': 'Transmission Assembly', 'type': 'demand', 'quantity': 15, 'date': '2024-07-12',
     'from': 'Supplier', 'to': 'Regional Distribution Hub', 'role': 'Supplier'},
    # Distributor
    {'id': 'T005', 'partName': 'Alternator', 'type': 'supply', 'quantity': 50, 'date': '2024-07-11',
     'from': 'Auto Parts Supply Co.', 'to': 'Distributor', 'role': 'Distributor'},
    {'id': 'T006', 'partName': 'Alternator', 'type': 'demand', 'quantity': 25, 'date': '2024-07-10',
     'from': 'Distributor', 'to': 'Citywide Repair Shops', 'role': 'Distributor'},
    {'id': 'T007', 'partName': 'Radiator', 'type': 'supply', 'quantity': 60, 'date': '2024-07-09',
     'from': 'Auto Parts Supply Co.', 'to': 'Distributor', 'role': 'Distributor'},
    {'id': 'T008', 'partName': 'Piston Set', 'type': 'supply', 'quantity': 200, 'date': '2024-07-08',
     'from': 'Apex Automotive Manufacturing', 'to': 'Supplier', 'role': 'Supplier'},
]


def get_demo_parts():
    return copy.deepcopy(DEMO_PARTS)


def get_demo_transactions():
    return copy.deepcopy(DEMO_TRANSACTIONS)
