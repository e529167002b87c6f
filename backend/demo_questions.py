"""Built-in question bank used when no QUESTIONS_FILE is configured."""

DEMO_QUESTIONS = [
    {
        "id": 1,
        "text": "Who invented the light bulb?",
        "type": "multiple_choice",
        "category": "Science",
        "options": ["Thomas Edison", "Albert Einstein", "Isaac Newton", "Nikola Tesla"],
        "correct_answer": "Thomas Edison",
        "points": 10,
        "wrong_answer_penalty": 5,
    },
    {
        "id": 2,
        "text": "How many planets are in our solar system?",
        "type": "multiple_choice",
        "category": "Science",
        "options": ["7", "8", "9", "10"],
        "correct_answer": "8",
        "points": 10,
        "wrong_answer_penalty": 5,
    },
    {
        "id": 3,
        "text": "What is the capital of Indonesia?",
        "type": "short_answer",
        "category": "Geography",
        "correct_answer": "Jakarta",
        "points": 20,
        "wrong_answer_penalty": 15,
    },
    {
        "id": 4,
        "text": "Who was the first president of Indonesia?",
        "type": "short_answer",
        "category": "History",
        "correct_answer": "Soekarno",
        "points": 20,
        "wrong_answer_penalty": 15,
    },
    {
        "id": 5,
        "text": "What is 15 x 12?",
        "type": "multiple_choice",
        "category": "Math",
        "options": ["150", "180", "190", "200"],
        "correct_answer": "180",
        "points": 10,
        "wrong_answer_penalty": 5,
    },
    {
        "id": 6,
        "text": "What is the chemical symbol for gold?",
        "type": "multiple_choice",
        "category": "Science",
        "options": ["Au", "Ag", "Fe", "Cu"],
        "correct_answer": "Au",
        "points": 10,
        "wrong_answer_penalty": 5,
    },
    {
        "id": 7,
        "text": "Name the longest river in the world.",
        "type": "short_answer",
        "category": "Geography",
        "correct_answer": "Nile",
        "points": 20,
        "wrong_answer_penalty": 15,
    },
    {
        "id": 8,
        "text": "How many provinces did Indonesia have in 2020?",
        "type": "multiple_choice",
        "category": "Geography",
        "options": ["33", "34", "35", "36"],
        "correct_answer": "34",
        "points": 10,
        "wrong_answer_penalty": 5,
    },
    {
        "id": 9,
        "text": "Who developed the theory of relativity?",
        "type": "short_answer",
        "category": "Science",
        "correct_answer": "Albert Einstein",
        "points": 20,
        "wrong_answer_penalty": 15,
    },
    {
        "id": 10,
        "text": "What is 25 squared?",
        "type": "multiple_choice",
        "category": "Math",
        "options": ["525", "625", "725", "825"],
        "correct_answer": "625",
        "points": 10,
        "wrong_answer_penalty": 5,
    },
]
