"""Curated providers, organizations and resources served from memory."""

SERVICE_PROVIDERS = [
    {
        "id": "card-1",
        "name": "Center for Autism and Related Disorders (CARD)",
        "description": "One of the world's largest ABA treatment providers with over 30 years of experience serving children and adults with autism.",
        "category": "Therapy Centers",
        "subcategory": "ABA Therapy",
        "location": {
            "address": "19019 Ventura Blvd",
            "city": "Tarzana",
            "state": "CA",
            "zipCode": "91356",
            "coordinates": {"lat": 34.1689, "lng": -118.5426},
        },
        "contact": {
            "phone": "(855) 345-2273",
            "email": "info@centerforautism.com",
            "website": "https://centerforautism.com",
        },
        "services": ["Applied Behavior Analysis (ABA)", "Early Intervention", "School Consultation", "Parent Training"],
        "specialties": ["Autism Spectrum Disorder", "Developmental Delays", "Behavioral Challenges"],
        "rating": 4.8,
        "reviewCount": 245,
        "featured": True,
        "verified": True,
        "telehealth": True,
    },
    {
        "id": "cortica-1",
        "name": "Cortica",
        "description": "Comprehensive autism care with medical, therapeutic, and behavioral services all in one place.",
        "category": "Diagnostic Centers",
        "subcategory": "Comprehensive Care",
        "location": {
            "address": "Multiple Locations",
            "city": "Nationwide",
            "state": "Multiple States",
            "zipCode": "Various",
            "coordinates": {"lat": 39.8283, "lng": -98.5795},
        },
        "contact": {"phone": "(833) 267-8422", "website": "https://www.corticacare.com"},
        "services": ["Autism Diagnosis", "ABA Therapy", "Speech Therapy", "Occupational Therapy", "Medical Care"],
        "specialties": ["Autism Spectrum Disorder", "ADHD", "Developmental Delays"],
        "rating": 4.6,
        "reviewCount": 189,
        "featured": True,
        "verified": True,
        "telehealth": True,
    },
    {
        "id": "hopebridge-1",
        "name": "Hopebridge Autism Therapy Centers",
        "description": "Providing comprehensive autism therapy with 360 Care approach combining multiple therapeutic disciplines.",
        "category": "Therapy Centers",
        "subcategory": "Multi-Disciplinary",
        "location": {
            "address": "Multiple Locations",
            "city": "Midwest & Southeast",
            "state": "Multiple States",
            "zipCode": "Various",
            "coordinates": {"lat": 39.1612, "lng": -87.5847},
        },
        "contact": {"phone": "(317) 826-2966", "website": "https://www.hopebridge.com"},
        "services": ["ABA Therapy", "Speech Therapy", "Occupational Therapy", "Diagnostic Evaluations"],
        "specialties": ["Autism Spectrum Disorder", "Sensory Processing", "Communication Delays"],
        "rating": 4.7,
        "reviewCount": 156,
        "featured": False,
        "verified": True,
        "telehealth": False,
    },
    {
        "id": "success-spectrum-1",
        "name": "Success on the Spectrum",
        "description": "National franchise providing ABA, speech, and occupational therapy with social skills group classes.",
        "category": "Therapy Centers",
        "subcategory": "Multi-Disciplinary",
        "location": {
            "address": "Multiple Locations",
            "city": "Nationwide",
            "state": "Multiple States",
            "zipCode": "Various",
            "coordinates": {"lat": 39.8283, "lng": -98.5795},
        },
        "contact": {"phone": "(877) 737-4776", "website": "https://successonthespectrum.com"},
        "services": ["ABA Therapy", "Speech Therapy", "Occupational Therapy", "Social Skills Groups"],
        "specialties": ["Autism Spectrum Disorder", "Social Communication", "Behavioral Intervention"],
        "rating": 4.5,
        "reviewCount": 98,
        "featured": False,
        "verified": True,
        "telehealth": True,
    },
]

FAMILY_ORGANIZATIONS = [
    {
        "id": "autism-speaks-1",
        "name": "Autism Speaks",
        "description": "Leading autism advocacy organization providing support, resources, and advocacy for individuals with autism and their families.",
        "category": "Family Support",
        "type": "national",
        "website": "https://www.autismspeaks.org",
        "phone": "(646) 385-8500",
        "services": ["Advocacy", "Resource Library", "100 Day Kit", "Autism Response Team", "Financial Assistance Directory"],
        "featured": True,
    },
    {
        "id": "autism-society-1",
        "name": "Autism Society of America",
        "description": "Grassroots autism organization with local chapters providing support, education, and advocacy nationwide.",
        "category": "Family Support",
        "type": "national",
        "website": "https://autismsociety.org",
        "phone": "(800) 328-8476",
        "services": ["Local Support Groups", "Educational Workshops", "Advocacy Training", "Information & Referral"],
        "featured": True,
    },
    {
        "id": "arc-1",
        "name": "Autism Resource Central",
        "description": "Comprehensive autism resource center providing information, support, and advocacy for families in New England.",
        "category": "Family Support",
        "type": "local",
        "website": "https://www.autismresourcecentral.org",
        "phone": "(508) 835-4278",
        "services": ["Resource Navigation", "Family Support", "Educational Advocacy", "Transition Planning"],
        "featured": False,
    },
]

EDUCATIONAL_RESOURCES = [
    {
        "id": "iep-guide-1",
        "title": "IEP vs 504 Plan: Complete Parent Guide",
        "description": "Comprehensive guide explaining the differences between IEPs and 504 plans, eligibility criteria, and how to advocate for your child.",
        "category": "IEP & 504 Plans",
        "type": "guide",
        "provider": "Life Skills Advocate",
        "website": "https://lifeskillsadvocate.com/blog/iep-vs-504/",
        "featured": True,
    },
    {
        "id": "autism-education-1",
        "title": "Autism and Education Resource Hub",
        "description": "Comprehensive educational resources including IEP goals, classroom strategies, and transition planning.",
        "category": "School Support",
        "type": "tool",
        "provider": "Autism Speaks",
        "website": "https://www.autismspeaks.org/autism-and-education",
        "featured": True,
    },
    {
        "id": "undivided-iep-1",
        "title": "School Supports and IEP Accommodations for Autism",
        "description": "Detailed guide on school supports, IEP accommodations, and 504 plan options specifically for students with autism.",
        "category": "IEP & 504 Plans",
        "type": "guide",
        "provider": "Undivided",
        "website": "https://undivided.io/resources/school-supports-and-iep-504-accommodations-for-autism-1340",
        "featured": False,
    },
]

ADULT_SERVICES = [
    {
        "id": "easterseals-1",
        "name": "Easterseals Adult Autism Services",
        "description": "Comprehensive support for autistic adults including employment services, independent living support, and social activities.",
        "category": "Adult Support",
        "type": "national",
        "website": "https://www.easterseals.com/programs-and-services/autism-services/adults-with-autism.html",
        "services": ["Employment Support", "Independent Living Training", "Social Skills Groups", "Day Programs"],
        "featured": True,
    },
    {
        "id": "asperger-works-1",
        "name": "Asperger Works",
        "description": "Employment and career services specifically designed for adults on the autism spectrum.",
        "category": "Employment Services",
        "type": "national",
        "website": "https://aspergerworks.org",
        "phone": "(351) 208-9450",
        "services": ["Job Coaching", "Career Counseling", "Skills Training", "Employer Education"],
        "featured": True,
    },
]
