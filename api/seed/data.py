"""
Sample portfolio content for local development.

Shaped like the create payloads so every document goes through the normal
save pipeline (slugs, publish dates, read time, table of contents).
"""

from __future__ import annotations

SAMPLE_PROJECTS: list[dict] = [
    {
        "title": "E-Commerce Platform",
        "description": "Full-stack e-commerce solution with payment integration and admin dashboard",
        "long_description": (
            "A comprehensive e-commerce platform featuring user authentication, product "
            "management, shopping cart, Stripe payments, order tracking and an admin "
            "dashboard, with real-time notifications and a responsive layout."
        ),
        "category": "web",
        "technologies": ["React", "Node.js", "PostgreSQL", "Redux", "Stripe", "JWT"],
        "tags": ["ecommerce", "fullstack"],
        "images": [
            {
                "id": "ecommerce-cover",
                "url": "https://images.unsplash.com/photo-1557821552-17105176677c?w=800",
                "alt": "E-Commerce Platform Screenshot",
                "caption": "",
                "is_primary": True,
            }
        ],
        "demo_url": "https://ecommerce-demo.com",
        "github_url": "https://github.com/yourusername/ecommerce-platform",
        "is_featured": True,
        "status": "completed",
        "year": 2024,
        "start_date": "2024-01-15",
        "end_date": "2024-06-30",
        "team_size": 1,
        "my_role": "Full Stack Developer",
        "challenges": [
            {
                "title": "Payment Processing Security",
                "description": "Secure payment processing while managing complex checkout state.",
                "solution": "Centralized checkout state and used Stripe's hosted payment APIs.",
            }
        ],
        "features": [
            "User authentication and authorization",
            "Product catalog with search and filters",
            "Stripe payment integration",
            "Order tracking system",
        ],
        "learnings": ["Advanced state management", "Secure payment gateway integration"],
        "metrics": {"performance": "99.9% uptime", "users": 5000},
    },
    {
        "title": "Task Management App",
        "description": "Collaborative task manager with real-time updates and team collaboration",
        "category": "web",
        "technologies": ["React", "Socket.io", "TailwindCSS", "FastAPI"],
        "tags": ["productivity", "collaboration", "realtime"],
        "github_url": "https://github.com/yourusername/task-app",
        "is_featured": True,
        "status": "completed",
        "year": 2024,
        "start_date": "2024-03-01",
        "end_date": "2024-05-15",
        "team_size": 2,
        "my_role": "Frontend Lead",
        "features": ["Drag-and-drop boards", "Live comments", "Activity tracking"],
    },
    {
        "title": "AI ChatBot Interface",
        "description": "Conversational assistant UI with streaming responses and context management",
        "category": "ai/ml",
        "technologies": ["Python", "FastAPI", "OpenAI API", "React"],
        "tags": ["ai", "chatbot"],
        "status": "in-progress",
        "priority": "high",
        "year": 2025,
        "start_date": "2025-02-01",
        "features": ["Streaming responses", "Conversation history", "Prompt templates"],
    },
]

SAMPLE_POSTS: list[dict] = [
    {
        "title": "Building Scalable React Applications: Best Practices",
        "excerpt": "Patterns for structuring React applications that stay maintainable as they grow.",
        "content": (
            "<h1>Building Scalable React Applications</h1>"
            "<p>Scalability is not only about performance. It is about keeping the code "
            "base easy to change as features pile up.</p>"
            "<h2>Component Architecture</h2>"
            "<p>Prefer small, focused components and lift state only as far as needed.</p>"
            "<h3>Atomic Design</h3>"
            "<p>Atoms, molecules and organisms give a shared vocabulary for UI pieces.</p>"
            "<h2>State Management</h2>"
            "<p>Local state first, context for cross-cutting concerns, a store when the "
            "data graph demands it.</p>"
        ),
        "category": "web-development",
        "tags": ["react", "javascript", "architecture"],
        "status": "published",
        "is_featured": True,
    },
    {
        "title": "Understanding the Node.js Event Loop",
        "excerpt": "What actually happens between your callback and the next tick.",
        "content": (
            "<h2>The Phases</h2>"
            "<p>Timers, pending callbacks, poll, check and close callbacks run in order.</p>"
            "<h2>Microtasks &amp; Promises</h2>"
            "<p>Microtasks drain after every macrotask, which is why promise chains can "
            "starve I/O when they never yield.</p>"
        ),
        "category": "programming-tips",
        "tags": ["nodejs", "javascript"],
        "status": "published",
    },
    {
        "title": "Introduction to Machine Learning with Python",
        "excerpt": "A gentle first pass through supervised learning with scikit-learn.",
        "content": (
            "<h2>Getting Started</h2>"
            "<p>Install scikit-learn, load a toy dataset and split it into train and test sets.</p>"
            "<h2>Your First Model</h2>"
            "<p>Fit a logistic regression and look at the confusion matrix before trusting "
            "any single accuracy number.</p>"
        ),
        "category": "ai-ml",
        "tags": ["python", "machine-learning"],
        "status": "draft",
    },
]
